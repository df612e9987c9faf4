"""
Blob store 层的标准返回结构。

所有 BlobStore 实现的 upload() 都返回这个对象。
业务层只认识这个格式，不知道背后是本地磁盘还是 Cloudinary。
"""

from dataclasses import dataclass


@dataclass
class BlobRef:
    url: str           # 对外可访问的地址，写入 photo_urls / image_url
    public_id: str     # 删除时用的标识
