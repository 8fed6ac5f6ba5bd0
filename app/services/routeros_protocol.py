"""
RouterOS API wire format.

Sentence = Word* + zero-length word
Word     = Length + UTF-8 data
Length   = 1 to 5 bytes, the high bits of the first byte say how many follow
"""
import hashlib
import struct
from typing import Dict, List, Optional, Tuple

REPLY_DATA = "!re"
REPLY_DONE = "!done"
REPLY_TRAP = "!trap"
REPLY_FATAL = "!fatal"
REPLY_EMPTY = "!empty"


def encode_length(length: int) -> bytes:
    if length < 0:
        raise ValueError(f"Negative word length: {length}")
    if length < 0x80:
        return struct.pack('B', length)
    elif length < 0x4000:
        return struct.pack('>H', length | 0x8000)
    elif length < 0x200000:
        return struct.pack('>I', length | 0xC00000)[1:]
    elif length < 0x10000000:
        return struct.pack('>I', length | 0xE0000000)
    else:
        return b'\xF0' + struct.pack('>I', length)


def length_prefix_size(first_byte: int) -> int:
    """Total size of a length prefix, given its first byte."""
    if (first_byte & 0x80) == 0x00:
        return 1
    elif (first_byte & 0xC0) == 0x80:
        return 2
    elif (first_byte & 0xE0) == 0xC0:
        return 3
    elif (first_byte & 0xF0) == 0xE0:
        return 4
    elif first_byte == 0xF0:
        return 5
    raise ValueError(f"Reserved control byte in length prefix: {first_byte:#04x}")


def decode_length(prefix: bytes) -> int:
    """Decode a complete length prefix (as sized by length_prefix_size)."""
    size = length_prefix_size(prefix[0])
    if len(prefix) != size:
        raise ValueError(f"Length prefix needs {size} bytes, got {len(prefix)}")
    if size == 1:
        return prefix[0]
    elif size == 2:
        return struct.unpack('>H', prefix)[0] & 0x3FFF
    elif size == 3:
        return struct.unpack('>I', b'\x00' + prefix)[0] & 0x1FFFFF
    elif size == 4:
        return struct.unpack('>I', prefix)[0] & 0x0FFFFFFF
    return struct.unpack('>I', prefix[1:])[0]


def encode_word(word: str) -> bytes:
    data = word.encode('utf-8')
    return encode_length(len(data)) + data


def encode_sentence(words: List[str]) -> bytes:
    return b''.join(encode_word(w) for w in words) + b'\x00'


def parse_reply(words: List[str]) -> Tuple[Optional[str], Dict[str, str]]:
    """
    Split a reply sentence into its type and attribute map.

    "=.id=*1" becomes {".id": "*1"}; the value may itself contain "=".
    API attributes such as ".tag=3" are kept under their own name.
    """
    if not words:
        return None, {}
    reply_type = words[0]
    attrs: Dict[str, str] = {}
    for word in words[1:]:
        if word.startswith('='):
            key, sep, value = word[1:].partition('=')
            attrs[key] = value if sep else ''
        elif word.startswith('.'):
            key, _, value = word.partition('=')
            attrs[key] = value
    return reply_type, attrs


def format_args(arguments: Optional[Dict[str, object]]) -> List[str]:
    """Turn {"name": "bob", "once": ""} into ["=name=bob", "=once="]."""
    if not arguments:
        return []
    words = []
    for key, value in arguments.items():
        if value is None:
            value = ''
        words.append(f"={key}={value}")
    return words


def md5_challenge_response(password: str, challenge_hex: str) -> str:
    """Legacy (pre-6.43) login: "00" + hex(MD5(0x00 + password + challenge))."""
    digest = hashlib.md5()
    digest.update(b'\x00')
    digest.update(password.encode('utf-8'))
    digest.update(bytes.fromhex(challenge_hex))
    return "00" + digest.hexdigest()
