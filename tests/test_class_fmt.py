import pytest

from class_file import parse_class
from class_fmt import describe, format_bytes_as_hex, format_entry, pad_name, render_class
from constant_pool import (
    CONSTANT_Class, CONSTANT_Integer, CONSTANT_InvokeDynamic, CONSTANT_MethodHandle,
    CONSTANT_Methodref, CONSTANT_MethodType, CONSTANT_NameAndType, CONSTANT_Utf8, ConstantPool,
)


def test_pad_name_name_is_shorter_than_wanted():
    assert pad_name('foo') == 'foo                  '


def test_pad_name_name_has_same_length_as_wanted():
    assert pad_name('foofoofoofoofoofoofoo') == 'foofoofoofoofoofoofoo'


def test_pad_name_name_is_longer_than_wanted():
    assert pad_name('foofoofoofoofoofoofoofoo') == 'foofoofoofoofoofoofoofoo'


def test_format_bytes_as_hex():
    assert format_bytes_as_hex(b'\xca\xfe\x0a\x00') == 'CA FE A 0'
    assert format_bytes_as_hex(b'') == ''


def test_format_entry():
    assert format_entry('magic:', b'\xca\xfe\xba\xbe') == 'magic:' + ' ' * 15 + 'CA FE BA BE'


@pytest.fixture
def method_pool():
    return ConstantPool.build([
        CONSTANT_Class(2),
        CONSTANT_Utf8.from_text('a/B'),
        CONSTANT_NameAndType(4, 5),
        CONSTANT_Utf8.from_text('m'),
        CONSTANT_Utf8.from_text('()V'),
        CONSTANT_Methodref(1, 3),
        CONSTANT_MethodHandle(6, 6),
        CONSTANT_InvokeDynamic(0, 3),
        CONSTANT_MethodType(5),
        CONSTANT_MethodHandle(5, 1),
        CONSTANT_Integer.from_value(7),
        CONSTANT_Utf8(b'\xff'),
    ])


@pytest.mark.parametrize('index, expected', [
    (1, 'Class a/B'),
    (3, 'NameAndType m:()V'),
    (6, 'Methodref a/B.m:()V'),
    (7, 'MethodHandle REF_invokeStatic a/B.m:()V'),
    (8, 'InvokeDynamic 0 -> m:()V'),
    (9, 'MethodType ()V'),
    (10, 'MethodHandle REF_invokeVirtual #1'),
    (11, 'Integer 7'),
])
def test_describe(method_pool, index, expected):
    assert describe(method_pool.resolve(index), method_pool) == expected


def test_describe_invalid_utf8(method_pool):
    assert describe(method_pool.resolve(12), method_pool).startswith('Utf8 <invalid')


def test_describe_dangling_reference(simple_class):
    pool = parse_class(simple_class).constant_pool
    assert describe(pool.resolve(7), pool) == 'String #99'


def test_render_class(simple_class):
    lines = render_class(parse_class(simple_class)).splitlines()
    assert lines[0] == 'magic:' + ' ' * 15 + 'CA FE BA BE'
    assert lines[1] == 'minor_version:' + ' ' * 7 + '0 0 (d0)'
    assert lines[2] == 'major_version:' + ' ' * 7 + '0 34 (d52)'
    assert lines[3] == 'constant_pool_count: 0 8 (d8)'
    assert lines[4] == 'constant #1:' + ' ' * 9 + '7 0 2'
    assert lines[5] == ' ' * 21 + 'Class Foo'
    assert lines[-2] == 'this_class:' + ' ' * 10 + '0 1 (Foo)'
    assert lines[-1] == 'super_class:' + ' ' * 9 + '0 3 (java/lang/Object)'


def test_describe_rejects_foreign_values(method_pool):
    with pytest.raises(TypeError):
        describe('not a constant', method_pool)
