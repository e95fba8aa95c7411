from medcheck.encoding.exceptions import EncodingError
from medcheck.encoding.image_encoder import ImageEncoder, decode_payload, strip_data_uri
from medcheck.encoding.models import EncodedImage

__all__ = ["EncodedImage", "EncodingError", "ImageEncoder", "decode_payload", "strip_data_uri"]
