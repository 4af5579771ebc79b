import struct

import pytest


def utf8(text):
    raw = text.encode()
    return b'\x01' + struct.pack('>H', len(raw)) + raw


@pytest.fixture
def simple_class():
    '''public class Foo, one String constant plus one dangling String reference.'''
    pool = b''.join([
        b'\x07\x00\x02',
        utf8('Foo'),
        b'\x07\x00\x04',
        utf8('java/lang/Object'),
        b'\x08\x00\x06',
        utf8('hello'),
        b'\x08\x00\x63',
    ])
    return (b'\xca\xfe\xba\xbe' + struct.pack('>HHH', 0, 52, 8) + pool +
            struct.pack('>HHH', 0x0021, 1, 3))
