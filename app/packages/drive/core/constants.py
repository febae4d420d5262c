"""常量定义：HTTP 状态码与业务层共用的固定值。"""

from fastapi import status

HTTP_STATUS_OK = status.HTTP_200_OK
HTTP_STATUS_CREATED = status.HTTP_201_CREATED
HTTP_STATUS_BAD_REQUEST = status.HTTP_400_BAD_REQUEST
HTTP_STATUS_UNAUTHORIZED = status.HTTP_401_UNAUTHORIZED
HTTP_STATUS_NOT_FOUND = status.HTTP_404_NOT_FOUND
HTTP_STATUS_UNPROCESSABLE_ENTITY = status.HTTP_422_UNPROCESSABLE_ENTITY
HTTP_STATUS_INTERNAL_SERVER_ERROR = status.HTTP_500_INTERNAL_SERVER_ERROR
HTTP_STATUS_BAD_GATEWAY = status.HTTP_502_BAD_GATEWAY

ACCESS_TOKEN_TYPE = "bearer"

# 对象 key 中随机段的字节数（十六进制输出长度为其两倍）
STORAGE_KEY_RANDOM_BYTES = 8
# 激活/重置令牌的随机字节数
LIFECYCLE_TOKEN_BYTES = 20

DEFAULT_MIME_TYPE = "application/octet-stream"
SIGNED_DOWNLOAD_PURPOSE = "file_download"
