import struct

import pytest

from class_cursor import ByteCursor, ClassFormatError, UnexpectedEof
from class_file import ClassHeader, InvalidMagic, parse_class, read_header


def test_read_header():
    cursor = ByteCursor(bytes.fromhex('cafebabe 0003 002d'))
    assert read_header(cursor) == ClassHeader(0xcafebabe, 3, 45)
    assert cursor.remaining() == 0


def test_invalid_magic():
    with pytest.raises(InvalidMagic) as exc:
        read_header(ByteCursor(bytes.fromhex('deadbeef 0000 0034')))
    assert 'deadbeef' in str(exc.value)


def test_parse_class(simple_class):
    class_file = parse_class(simple_class)
    assert class_file.header.major_version == 52
    assert class_file.constant_pool.count == 8
    assert len(class_file.constant_pool) == 7
    assert class_file.access_flags == 0x0021
    assert class_file.name == 'Foo'
    assert class_file.super_name == 'java/lang/Object'


def test_strings_skip_dangling_references(simple_class):
    assert parse_class(simple_class).strings() == ['hello']


def test_truncated_after_pool(simple_class):
    with pytest.raises(UnexpectedEof):
        parse_class(simple_class[:-2])


def test_this_class_must_be_a_class(simple_class):
    # point this_class at the Utf8 entry
    data = simple_class[:-4] + struct.pack('>HH', 2, 3)
    with pytest.raises(ClassFormatError) as exc:
        parse_class(data).name
    assert exc.value.entry == 2
