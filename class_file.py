#!/usr/bin/env python3

from collections import namedtuple

from class_cursor import ByteCursor, ClassFormatError
from constant_pool import CONSTANT_Class, CONSTANT_String, CONSTANT_Utf8, decode_pool

CLASS_MAGIC = 0xcafebabe


class InvalidMagic(ClassFormatError):
    def __init__(self, magic):
        super().__init__(f'Invalid class: {magic:x}', 0)
        self.magic = magic


ClassHeader = namedtuple('ClassHeader', 'magic minor_version major_version')


class ClassFile:
    def __init__(self, header, constant_pool, access_flags, this_class, super_class):
        self.header = header
        self.constant_pool = constant_pool
        self.access_flags = access_flags
        self.this_class = this_class
        self.super_class = super_class

    def _class_name(self, index):
        clazz = self.constant_pool.resolve(index)
        if not isinstance(clazz, CONSTANT_Class):
            raise ClassFormatError(f'Constant #{index} is {clazz.name}, not Class', entry=index, tag=clazz.tag)
        name = self.constant_pool.resolve(clazz.name_index)
        if not isinstance(name, CONSTANT_Utf8):
            raise ClassFormatError(f'Constant #{clazz.name_index} is {name.name}, not Utf8',
                                   entry=clazz.name_index, tag=name.tag)
        return name.text

    @property
    def name(self):
        return self._class_name(self.this_class)

    @property
    def super_name(self):
        # only java/lang/Object has no superclass
        if self.super_class == 0:
            return None
        return self._class_name(self.super_class)

    def strings(self):
        '''Texts of all String constants that point at decodable Utf8 entries.'''
        result = []
        for entry in self.constant_pool:
            if not isinstance(entry.payload, CONSTANT_String):
                continue
            try:
                value = self.constant_pool.resolve(entry.payload.string_index)
            except IndexError:
                continue
            if isinstance(value, CONSTANT_Utf8) and value.value:
                result.append(value.value)
        return result


def read_header(cursor):
    magic = cursor.read_u32_be()
    if magic != CLASS_MAGIC:
        raise InvalidMagic(magic)
    minor_version = cursor.read_u16_be()
    major_version = cursor.read_u16_be()
    return ClassHeader(magic, minor_version, major_version)


def parse_class(data, wide_slots=False):
    cursor = data if isinstance(data, ByteCursor) else ByteCursor(data)

    header = read_header(cursor)
    constant_pool = decode_pool(cursor, wide_slots)

    access_flags = cursor.read_u16_be()
    this_class = cursor.read_u16_be()
    super_class = cursor.read_u16_be()

    return ClassFile(header, constant_pool, access_flags, this_class, super_class)
