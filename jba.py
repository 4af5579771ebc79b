#!/usr/bin/env python3

from class_cursor import ClassFormatError
from class_file import parse_class
from class_fmt import render_class
import argparse, io, sys, zipfile, zlib
import magic, mimetypes

CLASS_MAGIC = b'\xCA\xFE\xBA\xBE'
ZIP_MAGIC = b'PK\x03\x04'


class AnalysisError(Exception):
    pass


def guess_type(data):
    mime_type = magic.from_buffer(data, True)
    if mime_type:
        return mime_type, mimetypes.guess_extension(mime_type)
    return None, None


def analyze_class(name, data, wide_slots=False):
    try:
        class_file = parse_class(data, wide_slots)
    except ClassFormatError as e:
        raise AnalysisError(f'{name}: {e}') from e

    return '\n'.join([
        f'{name}:',
        '=' * (len(name) + 1),
        render_class(class_file),
    ])


def analyze_file(input_path, wide_slots=False, verbose=False):
    '''Return the dump of every class in input_path; nothing is returned if any of them fails.'''
    try:
        with open(input_path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise AnalysisError(f"Can't read file {input_path}: {e.strerror}") from e

    if data.startswith(CLASS_MAGIC):
        return [analyze_class(input_path, data, wide_slots)]

    if not data.startswith(ZIP_MAGIC):
        mime_type, extension = guess_type(data)
        raise AnalysisError(f'{input_path}: not a class file or jar (detected {mime_type or "unknown type"}'
                            f'{", " + extension if extension else ""})')

    dumps = []
    try:
        with io.BytesIO(data) as f, zipfile.ZipFile(f, 'r') as zin:
            for file in zin.infolist():
                if file.is_dir() or not file.filename.endswith('.class'):
                    if verbose:
                        print(f'Skipping {file.filename}')
                    continue

                if verbose:
                    print(f'Analyzing {file.filename}')

                name = f'{input_path}!/{file.filename}'
                try:
                    member = zin.read(file)
                except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as e:
                    raise AnalysisError(f'{name}: {e}') from e

                dumps.append(analyze_class(name, member, wide_slots))
    except zipfile.BadZipFile as e:
        raise AnalysisError(f'{input_path}: {e}') from e

    if verbose:
        print(f'Done, {len(dumps)} class(es).')

    return dumps


class ArgumentParser(argparse.ArgumentParser):
    # bad arguments exit with 1, analysis failures with 2
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f'{self.prog}: error: {message}\n')


def build_parser():
    parser = ArgumentParser(prog='jba', description=r'''
---------- Java bytecode analyzer ----------
Dumps the header and constant pool of a class file,
or of every class inside a jar.
''', formatter_class=argparse.RawTextHelpFormatter)
    parser.add_argument('input', type=str, help='input class or jar file')
    parser.add_argument('-v', '--verbose', action='store_true', help='verbose output')
    parser.add_argument('--wide-slots', action='store_true',
                        help='let Long and Double constants take two index slots')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        dumps = analyze_file(args.input, args.wide_slots, args.verbose)
    except AnalysisError as e:
        print(e, file=sys.stderr)
        return 2

    print('\n\n'.join(dumps))
    return 0


if __name__ == '__main__':
    sys.exit(main())
