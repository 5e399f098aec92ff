import hashlib

import pytest

from qrdrop.config import CodecConfig
from qrdrop.shared.utils import (
    block_count,
    checksum32,
    combine_blocks,
    levenshtein,
    split_blocks,
    string_similarity,
    xor_into,
)


def test_split_pads_last_block():
    assert split_blocks(b"abcdefg", 3) == [b"abc", b"def", b"g\x00\x00"]
    assert split_blocks(b"abcdef", 3) == [b"abc", b"def"]
    assert split_blocks(b"", 3) == []


def test_split_rejects_bad_block_size():
    with pytest.raises(ValueError):
        split_blocks(b"abc", 0)


def test_combine_truncates():
    assert combine_blocks([b"abc", b"d\x00\x00"], 4) == b"abcd"


@pytest.mark.parametrize(
    "length, size, expected", [(0, 4, 0), (1, 4, 1), (4, 4, 1), (5, 4, 2), (16, 4, 4)]
)
def test_block_count(length, size, expected):
    assert block_count(length, size) == expected


def test_xor_into():
    target = bytearray(b"\x0f\xf0\xaa")
    xor_into(target, b"\xff\xff\xff")
    assert target == bytearray(b"\xf0\x0f\x55")
    xor_into(target, b"\xff")
    assert target == bytearray(b"\x0f\x0f\x55")
    xor_into(target, b"")
    assert target == bytearray(b"\x0f\x0f\x55")


def test_checksum32_is_signed_md5_prefix():
    digest = hashlib.md5(b"qrdrop").digest()
    expected = int.from_bytes(digest[:4], "big", signed=True)
    assert checksum32(b"qrdrop") == expected
    assert -(2**31) <= checksum32(b"\xff" * 64) < 2**31


def test_levenshtein():
    assert levenshtein("FLQR", "FLQR") == 0
    assert levenshtein("FLQR", "FLQX") == 1
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3


def test_string_similarity():
    assert string_similarity("FLQR", "FLQR") == 1.0
    assert string_similarity("FLQR", "FLQX") == 0.75
    assert string_similarity("ABCD", "FLQR") == 0.0
    assert string_similarity("", "") == 1.0


def test_config_validation():
    with pytest.raises(ValueError):
        CodecConfig(block_size=0)
    with pytest.raises(ValueError):
        CodecConfig(magic="TOOLONG")
    with pytest.raises(ValueError):
        CodecConfig(soliton_delta=1.5)
    config = CodecConfig().replace(block_size=64)
    assert config.block_size == 64
    with pytest.raises(ValueError):
        config.replace(checksum_tolerance=-1)
