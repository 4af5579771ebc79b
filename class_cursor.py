#!/usr/bin/env python3

import struct


class ClassFormatError(Exception):
    '''Base for everything that can go wrong while decoding a class file.'''

    def __init__(self, message, offset=None, entry=None, tag=None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.entry = entry
        self.tag = tag

    def annotate(self, entry=None, tag=None):
        if self.entry is None:
            self.entry = entry
        if self.tag is None:
            self.tag = tag
        return self

    def __str__(self):
        context = []
        if self.offset is not None:
            context.append(f'offset {self.offset}')
        if self.entry is not None:
            context.append(f'constant #{self.entry}')
        if self.tag is not None:
            context.append(f'tag {self.tag}')
        if context:
            return f'{self.message} ({", ".join(context)})'
        return self.message


class UnexpectedEof(ClassFormatError):
    def __init__(self, offset, wanted, available):
        super().__init__(f'Unexpected end of data: wanted {wanted} byte(s), {available} left', offset)
        self.wanted = wanted
        self.available = available


class ByteCursor:
    '''
    Forward-only reader over a finite byte sequence.

    Every read either consumes exactly the bytes it asked for or raises
    UnexpectedEof without moving.
    '''

    def __init__(self, data):
        self.data = bytes(data)
        self.offset = 0

    @classmethod
    def from_file(cls, f):
        return cls(f.read())

    def remaining(self):
        return len(self.data) - self.offset

    def _take(self, n):
        if n < 0:
            raise ValueError(f'Negative read size: {n}')
        if self.remaining() < n:
            raise UnexpectedEof(self.offset, n, self.remaining())
        start = self.offset
        self.offset += n
        return start

    def _unpack(self, fmt):
        start = self._take(struct.calcsize(fmt))
        value, = struct.unpack_from(fmt, self.data, start)
        return value

    def read_u8(self):
        return self._unpack('>B')

    def read_u16_be(self):
        return self._unpack('>H')

    def read_u32_be(self):
        return self._unpack('>I')

    def read_bytes(self, n):
        start = self._take(n)
        return self.data[start:start+n]
