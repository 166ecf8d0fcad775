"""
Payload Codecs - Loto Bonheur
=============================

Compression for exported draw data, behind a small Codec interface so the
algorithm can change without touching the import/export endpoints.

Components:
- Codec: encode/decode interface with per-instance CompressionStats
- ZlibCodec / IdentityCodec: concrete codecs
- pack_json / unpack_json: JSON envelope with SHA-256 integrity check
"""

import base64
import hashlib
import json
import time
import zlib
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from loguru import logger

ENVELOPE_FORMAT = "lotobonheur-export/1"


class CodecError(Exception):
    """Raised when a payload cannot be decoded."""


class ChecksumMismatchError(CodecError):
    """Raised when decoded data does not match its recorded checksum."""


@dataclass
class CompressionStats:
    operations: int = 0
    total_original_bytes: int = 0
    total_encoded_bytes: int = 0
    total_time_ms: float = 0.0

    def record(self, original_size: int, encoded_size: int, elapsed_ms: float) -> None:
        self.operations += 1
        self.total_original_bytes += original_size
        self.total_encoded_bytes += encoded_size
        self.total_time_ms += elapsed_ms

    @property
    def average_ratio(self) -> float:
        if self.total_original_bytes == 0:
            return 0.0
        return self.total_encoded_bytes / self.total_original_bytes

    @property
    def average_time_ms(self) -> float:
        return self.total_time_ms / self.operations if self.operations else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['average_ratio'] = round(self.average_ratio, 4)
        data['average_time_ms'] = round(self.average_time_ms, 3)
        return data


class Codec(ABC):
    name: str = "codec"

    def __init__(self):
        self.stats = CompressionStats()

    def encode(self, data: bytes) -> bytes:
        start = time.perf_counter()
        encoded = self._encode(data)
        self.stats.record(len(data), len(encoded), (time.perf_counter() - start) * 1000)
        return encoded

    def decode(self, data: bytes) -> bytes:
        return self._decode(data)

    @abstractmethod
    def _encode(self, data: bytes) -> bytes:
        ...

    @abstractmethod
    def _decode(self, data: bytes) -> bytes:
        ...


class ZlibCodec(Codec):
    name = "zlib"

    def __init__(self, level: int = 6):
        super().__init__()
        if not 0 <= level <= 9:
            raise ValueError("zlib level must be between 0 and 9")
        self.level = level

    def _encode(self, data: bytes) -> bytes:
        return zlib.compress(data, self.level)

    def _decode(self, data: bytes) -> bytes:
        try:
            return zlib.decompress(data)
        except zlib.error as e:
            raise CodecError(f"Invalid zlib payload: {e}") from e


class IdentityCodec(Codec):
    name = "identity"

    def _encode(self, data: bytes) -> bytes:
        return data

    def _decode(self, data: bytes) -> bytes:
        return data


CODECS = {codec.name: codec for codec in (ZlibCodec, IdentityCodec)}


def get_codec(name: str) -> Codec:
    try:
        return CODECS[name]()
    except KeyError:
        raise CodecError(f"Unknown codec: {name}")


def checksum(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def pack_json(obj: Any, codec: Optional[Codec] = None) -> Dict[str, Any]:
    """Serialize `obj` to JSON, encode it and wrap it in a checksummed envelope."""
    codec = codec or ZlibCodec()
    raw = json.dumps(obj, ensure_ascii=False, sort_keys=True).encode('utf-8')
    encoded = codec.encode(raw)
    logger.debug(f"Packed {len(raw)} bytes into {len(encoded)} with {codec.name}")
    return {
        'format': ENVELOPE_FORMAT,
        'codec': codec.name,
        'checksum': checksum(raw),
        'original_size': len(raw),
        'compressed_size': len(encoded),
        'payload': base64.b64encode(encoded).decode('ascii'),
    }


def unpack_json(envelope: Dict[str, Any]) -> Any:
    """
    Reverse of pack_json.

    Raises:
        CodecError: unknown codec or undecodable payload
        ChecksumMismatchError: payload does not match its checksum
    """
    try:
        codec = get_codec(envelope['codec'])
        encoded = base64.b64decode(envelope['payload'], validate=True)
        expected = envelope['checksum']
    except (KeyError, TypeError, ValueError) as e:
        raise CodecError(f"Malformed envelope: {e}") from e

    raw = codec.decode(encoded)
    if checksum(raw) != expected:
        raise ChecksumMismatchError("Payload checksum does not match")
    try:
        return json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CodecError(f"Payload is not valid JSON: {e}") from e
