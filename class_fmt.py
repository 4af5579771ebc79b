#!/usr/bin/env python3

import struct

from constant_pool import (CONSTANT_Class, CONSTANT_Utf8, CONSTANT_NameAndType, CONSTANT_XXXref,
                           CONSTANT_String, CONSTANT_MethodHandle, CONSTANT_MethodType,
                           CONSTANT_InvokeDynamic, CONSTANT_Number, CONSTANT_WideNumber)

NAME_WIDTH = 21

REFERENCE_KINDS = {
    1: 'REF_getField',
    2: 'REF_getStatic',
    3: 'REF_putField',
    4: 'REF_putStatic',
    5: 'REF_invokeVirtual',
    6: 'REF_invokeStatic',
    7: 'REF_invokeSpecial',
    8: 'REF_newInvokeSpecial',
    9: 'REF_invokeInterface',
}


def pad_name(name):
    return name.ljust(NAME_WIDTH)


def format_bytes_as_hex(data):
    return ' '.join(f'{b:X}' for b in data)


def format_entry(name, data):
    return f'{pad_name(name)}{format_bytes_as_hex(data)}'


def _lookup(pool, index, kind):
    try:
        value = pool.resolve(index)
    except IndexError:
        return None
    return value if isinstance(value, kind) else None


def _utf8(pool, index):
    value = _lookup(pool, index, CONSTANT_Utf8)
    if value is None or value.error:
        return f'#{index}'
    return value.value


def _class_name(pool, index):
    clazz = _lookup(pool, index, CONSTANT_Class)
    if clazz is None:
        return f'#{index}'
    return _utf8(pool, clazz.name_index)


def _name_and_type(pool, index):
    nat = _lookup(pool, index, CONSTANT_NameAndType)
    if nat is None:
        return f'#{index}'
    return f'{_utf8(pool, nat.name_index)}:{_utf8(pool, nat.descriptor_index)}'


def _member(pool, ref):
    clazz = _class_name(pool, ref.class_index)
    nat = _name_and_type(pool, ref.name_and_type_index)
    return f'{clazz}.{nat}'


def describe(constant, pool):
    '''One-line description of a constant with its references looked up in pool.'''
    if isinstance(constant, CONSTANT_Utf8):
        if constant.error:
            return f'Utf8 <invalid: {constant.error.reason}>'
        return f'Utf8 {constant.value}'
    if isinstance(constant, (CONSTANT_Number, CONSTANT_WideNumber)):
        return f'{constant.name} {constant.value}'
    if isinstance(constant, CONSTANT_Class):
        return f'Class {_utf8(pool, constant.name_index)}'
    if isinstance(constant, CONSTANT_String):
        return f'String {_utf8(pool, constant.string_index)}'
    if isinstance(constant, CONSTANT_XXXref):
        return f'{constant.name} {_member(pool, constant)}'
    if isinstance(constant, CONSTANT_NameAndType):
        return f'NameAndType {_utf8(pool, constant.name_index)}:{_utf8(pool, constant.descriptor_index)}'
    if isinstance(constant, CONSTANT_MethodHandle):
        kind = REFERENCE_KINDS.get(constant.reference_kind, f'kind {constant.reference_kind}')
        ref = _lookup(pool, constant.reference_index, CONSTANT_XXXref)
        target = _member(pool, ref) if ref else f'#{constant.reference_index}'
        return f'MethodHandle {kind} {target}'
    if isinstance(constant, CONSTANT_MethodType):
        return f'MethodType {_utf8(pool, constant.descriptor_index)}'
    if isinstance(constant, CONSTANT_InvokeDynamic):
        return f'InvokeDynamic {constant.bootstrap_method_attr_index} -> {_name_and_type(pool, constant.name_and_type_index)}'
    raise TypeError(f'Not a constant pool entry: {constant!r}')


def render_header(header):
    return [
        format_entry('magic:', struct.pack('>I', header.magic)),
        f'{format_entry("minor_version:", struct.pack(">H", header.minor_version))} (d{header.minor_version})',
        f'{format_entry("major_version:", struct.pack(">H", header.major_version))} (d{header.major_version})',
    ]


def render_pool(pool):
    lines = [f'{format_entry("constant_pool_count:", struct.pack(">H", pool.count))} (d{pool.count})']
    for entry in pool:
        raw = bytearray([entry.tag])
        entry.payload.write(raw)
        lines.append(format_entry(f'constant #{entry.index}:', raw))
        lines.append(f'{" " * NAME_WIDTH}{describe(entry.payload, pool)}')
    return lines


def render_class(class_file):
    lines = render_header(class_file.header)
    lines.extend(render_pool(class_file.constant_pool))
    lines.append(f'{format_entry("access_flags:", struct.pack(">H", class_file.access_flags))} (0x{class_file.access_flags:04x})')
    lines.append(f'{format_entry("this_class:", struct.pack(">H", class_file.this_class))} '
                 f'({_class_name(class_file.constant_pool, class_file.this_class)})')
    lines.append(f'{format_entry("super_class:", struct.pack(">H", class_file.super_class))} '
                 f'({_class_name(class_file.constant_pool, class_file.super_class)})')
    return '\n'.join(lines)
