from dataclasses import dataclass


@dataclass(frozen=True)
class EncodedImage:
    """Transport-ready image: base64 body without any data-URI prefix."""

    payload: str
    media_type: str

    def __repr__(self) -> str:
        return f"EncodedImage(media_type={self.media_type!r}, payload_chars={len(self.payload)})"
