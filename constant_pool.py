#!/usr/bin/env python3

import struct
from collections import namedtuple

from class_cursor import ClassFormatError

# https://docs.oracle.com/javase/specs/jvms/se7/html/jvms-4.html#jvms-4.4


class UnrecognizedTag(ClassFormatError):
    def __init__(self, value, offset=None, entry=None):
        super().__init__(f'Unrecognized constant pool tag: {value}', offset, entry, value)
        self.value = value


class InvalidUtf8(ClassFormatError):
    '''Recorded on a CONSTANT_Utf8 whose bytes are not valid UTF-8; never raised while decoding.'''

    def __init__(self, raw, reason, offset=None):
        super().__init__(f'Invalid UTF-8 in constant: {reason}', offset)
        self.raw = raw
        self.reason = reason


class SizeMismatch(ClassFormatError):
    def __init__(self, expected, consumed, offset, entry, tag):
        super().__init__(f'Constant consumed {consumed} byte(s), expected {expected}', offset, entry, tag)
        self.expected = expected
        self.consumed = consumed


class Constant:
    tag = None
    name = None
    # index slots taken in the JVM numbering convention
    slots = 1

    def _fields(self):
        raise NotImplementedError

    @property
    def size(self):
        raise NotImplementedError

    def write(self, out):
        raise NotImplementedError

    def __eq__(self, other):
        return type(self) is type(other) and self._fields() == other._fields()

    def __hash__(self):
        return hash((type(self), self._fields()))

    def __setattr__(self, name, value):
        # fields are assigned once, in __init__
        if name in self.__dict__:
            raise AttributeError(f'{type(self).__name__}.{name} is read-only')
        super().__setattr__(name, value)


class CONSTANT_Utf8(Constant):
    tag = 1
    name = 'Utf8'

    def __init__(self, raw, offset=None):
        self.raw = bytes(raw)
        try:
            self.value = self.raw.decode()
            self.error = None
        except UnicodeDecodeError as e:
            self.value = None
            self.error = InvalidUtf8(self.raw, e.reason, offset)

    @classmethod
    def from_text(cls, text):
        return cls(text.encode())

    @property
    def text(self):
        if self.error:
            raise self.error
        return self.value

    @property
    def size(self):
        return 2 + len(self.raw)

    def _fields(self):
        return (self.raw,)

    def __repr__(self):
        if self.error:
            return f'Utf8 <invalid {self.raw!r}>'
        return f'Utf8 {self.value!r}'

    @classmethod
    def read(cls, cursor):
        length = cursor.read_u16_be()
        offset = cursor.offset
        return cls(cursor.read_bytes(length), offset)

    def write(self, out):
        out += struct.pack('>H', len(self.raw))
        out += self.raw


class CONSTANT_Number(Constant):
    FORMAT = None

    def __init__(self, raw):
        self.raw = bytes(raw)

    @classmethod
    def from_value(cls, value):
        return cls(struct.pack(cls.FORMAT, value))

    @property
    def value(self):
        value, = struct.unpack(self.FORMAT, self.raw)
        return value

    @property
    def size(self):
        return 4

    def _fields(self):
        return (self.raw,)

    def __repr__(self):
        return f'{self.name} {self.value}'

    @classmethod
    def read(cls, cursor):
        return cls(cursor.read_bytes(4))

    def write(self, out):
        out += self.raw


class CONSTANT_Integer(CONSTANT_Number):
    tag = 3
    name = 'Integer'
    FORMAT = '>i'


class CONSTANT_Float(CONSTANT_Number):
    tag = 4
    name = 'Float'
    FORMAT = '>f'


class CONSTANT_WideNumber(Constant):
    FORMAT = None
    slots = 2

    def __init__(self, high, low):
        self.high = bytes(high)
        self.low = bytes(low)

    @classmethod
    def from_value(cls, value):
        raw = struct.pack(cls.FORMAT, value)
        return cls(raw[:4], raw[4:])

    @property
    def value(self):
        value, = struct.unpack(self.FORMAT, self.high + self.low)
        return value

    @property
    def size(self):
        return 8

    def _fields(self):
        return (self.high, self.low)

    def __repr__(self):
        return f'{self.name} {self.value}'

    @classmethod
    def read(cls, cursor):
        high = cursor.read_bytes(4)
        low = cursor.read_bytes(4)
        return cls(high, low)

    def write(self, out):
        out += self.high
        out += self.low


class CONSTANT_Long(CONSTANT_WideNumber):
    tag = 5
    name = 'Long'
    FORMAT = '>q'


class CONSTANT_Double(CONSTANT_WideNumber):
    tag = 6
    name = 'Double'
    FORMAT = '>d'


class CONSTANT_Class(Constant):
    tag = 7
    name = 'Class'

    def __init__(self, name_index):
        self.name_index = name_index

    @property
    def size(self):
        return 2

    def _fields(self):
        return (self.name_index,)

    def __repr__(self):
        return f'Class #{self.name_index}'

    @classmethod
    def read(cls, cursor):
        return cls(cursor.read_u16_be())

    def write(self, out):
        out += struct.pack('>H', self.name_index)


class CONSTANT_String(Constant):
    tag = 8
    name = 'String'

    def __init__(self, string_index):
        self.string_index = string_index

    @property
    def size(self):
        return 2

    def _fields(self):
        return (self.string_index,)

    def __repr__(self):
        return f'String #{self.string_index}'

    @classmethod
    def read(cls, cursor):
        return cls(cursor.read_u16_be())

    def write(self, out):
        out += struct.pack('>H', self.string_index)


class CONSTANT_XXXref(Constant):
    def __init__(self, class_index, name_and_type_index):
        self.class_index = class_index
        self.name_and_type_index = name_and_type_index

    @property
    def size(self):
        return 4

    def _fields(self):
        return (self.class_index, self.name_and_type_index)

    def __repr__(self):
        return f'{self.name} #{self.class_index}.#{self.name_and_type_index}'

    @classmethod
    def read(cls, cursor):
        class_index = cursor.read_u16_be()
        name_and_type_index = cursor.read_u16_be()
        return cls(class_index, name_and_type_index)

    def write(self, out):
        out += struct.pack('>HH', self.class_index, self.name_and_type_index)


class CONSTANT_Fieldref(CONSTANT_XXXref):
    tag = 9
    name = 'Fieldref'


class CONSTANT_Methodref(CONSTANT_XXXref):
    tag = 10
    name = 'Methodref'


class CONSTANT_InterfaceMethodref(CONSTANT_XXXref):
    tag = 11
    name = 'InterfaceMethodref'


class CONSTANT_NameAndType(Constant):
    tag = 12
    name = 'NameAndType'

    def __init__(self, name_index, descriptor_index):
        self.name_index = name_index
        self.descriptor_index = descriptor_index

    @property
    def size(self):
        return 4

    def _fields(self):
        return (self.name_index, self.descriptor_index)

    def __repr__(self):
        return f'NameAndType #{self.name_index}:#{self.descriptor_index}'

    @classmethod
    def read(cls, cursor):
        name_index = cursor.read_u16_be()
        descriptor_index = cursor.read_u16_be()
        return cls(name_index, descriptor_index)

    def write(self, out):
        out += struct.pack('>HH', self.name_index, self.descriptor_index)


class CONSTANT_MethodHandle(Constant):
    tag = 15
    name = 'MethodHandle'

    def __init__(self, reference_kind, reference_index):
        self.reference_kind = reference_kind
        self.reference_index = reference_index

    @property
    def size(self):
        return 3

    def _fields(self):
        return (self.reference_kind, self.reference_index)

    def __repr__(self):
        return f'MethodHandle {self.reference_kind} #{self.reference_index}'

    @classmethod
    def read(cls, cursor):
        reference_kind = cursor.read_u8()
        reference_index = cursor.read_u16_be()
        return cls(reference_kind, reference_index)

    def write(self, out):
        out += struct.pack('>BH', self.reference_kind, self.reference_index)


class CONSTANT_MethodType(Constant):
    tag = 16
    name = 'MethodType'

    def __init__(self, descriptor_index):
        self.descriptor_index = descriptor_index

    @property
    def size(self):
        return 2

    def _fields(self):
        return (self.descriptor_index,)

    def __repr__(self):
        return f'MethodType #{self.descriptor_index}'

    @classmethod
    def read(cls, cursor):
        return cls(cursor.read_u16_be())

    def write(self, out):
        out += struct.pack('>H', self.descriptor_index)


class CONSTANT_InvokeDynamic(Constant):
    tag = 18
    name = 'InvokeDynamic'

    def __init__(self, bootstrap_method_attr_index, name_and_type_index):
        self.bootstrap_method_attr_index = bootstrap_method_attr_index
        self.name_and_type_index = name_and_type_index

    @property
    def size(self):
        return 4

    def _fields(self):
        return (self.bootstrap_method_attr_index, self.name_and_type_index)

    def __repr__(self):
        return f'InvokeDynamic {self.bootstrap_method_attr_index} -> #{self.name_and_type_index}'

    @classmethod
    def read(cls, cursor):
        bootstrap_method_attr_index = cursor.read_u16_be()
        name_and_type_index = cursor.read_u16_be()
        return cls(bootstrap_method_attr_index, name_and_type_index)

    def write(self, out):
        out += struct.pack('>HH', self.bootstrap_method_attr_index, self.name_and_type_index)


CONSTANTS = {
    1: CONSTANT_Utf8,
    3: CONSTANT_Integer,
    4: CONSTANT_Float,
    5: CONSTANT_Long,
    6: CONSTANT_Double,
    7: CONSTANT_Class,
    8: CONSTANT_String,
    9: CONSTANT_Fieldref,
    10: CONSTANT_Methodref,
    11: CONSTANT_InterfaceMethodref,
    12: CONSTANT_NameAndType,
    15: CONSTANT_MethodHandle,
    16: CONSTANT_MethodType,
    18: CONSTANT_InvokeDynamic
}


ConstantPoolEntry = namedtuple('ConstantPoolEntry', 'index tag payload')


class ConstantPool:
    def __init__(self, count, entries):
        self.count = count
        self.entries = tuple(entries)
        self._by_index = {e.index: e for e in self.entries}

    @classmethod
    def build(cls, constants, wide_slots=False):
        '''Number constants from 1 the way decode_pool would and wrap them in a pool.'''
        entries = []
        index = 1
        for constant in constants:
            entries.append(ConstantPoolEntry(index, constant.tag, constant))
            index += constant.slots if wide_slots else 1
        return cls(index, entries)

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __getitem__(self, index):
        try:
            return self._by_index[index]
        except KeyError:
            raise IndexError(f'No constant #{index} in pool of count {self.count}') from None

    def resolve(self, index):
        return self[index].payload

    def __eq__(self, other):
        return isinstance(other, ConstantPool) and (self.count, self.entries) == (other.count, other.entries)

    def __repr__(self):
        return f'ConstantPool(count={self.count}, entries={list(self.entries)!r})'


def decode_entry(cursor, index):
    start = cursor.offset
    tag = None
    try:
        tag = cursor.read_u8()
        kind = CONSTANTS.get(tag)
        if kind is None:
            raise UnrecognizedTag(tag, start, index)

        payload = kind.read(cursor)
    except ClassFormatError as e:
        raise e.annotate(entry=index, tag=tag)

    consumed = cursor.offset - start
    if consumed != 1 + payload.size:
        raise SizeMismatch(1 + payload.size, consumed, start, index, tag)

    if isinstance(payload, CONSTANT_Utf8) and payload.error:
        payload.error.annotate(entry=index, tag=tag)

    return ConstantPoolEntry(index, tag, payload)


def decode_pool(cursor, wide_slots=False):
    '''
    Decode constant_pool_count and the records following it.

    Every record gets the next sequential index unless wide_slots is set, in
    which case Long and Double leave the index after them unused.
    '''
    count = cursor.read_u16_be()

    entries = []
    index = 1
    while index < count:
        entry = decode_entry(cursor, index)
        entries.append(entry)
        index += entry.payload.slots if wide_slots else 1

    return ConstantPool(count, entries)


def encode_pool(pool):
    out = bytearray(struct.pack('>H', pool.count))
    for entry in pool.entries:
        out.append(entry.tag)
        entry.payload.write(out)
    return bytes(out)
