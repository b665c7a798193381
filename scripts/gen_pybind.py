#!/usr/bin/env python3
"""
gen_pybind.py - pybind11 binding generator entry point

Generates one pybind11 registration source from the JSON entity dumps of
one or more C++ headers.

Usage:
    python scripts/gen_pybind.py FILE.json [FILE.json ...] [--lib NAME] [-o OUTPUT]

Exit status: 0 on success, 1 on a missing or invalid argument, 2 when an
input cannot be loaded.
"""

import argparse
import json
import os
import sys

# Add scripts directory to path when run from a checkout
script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
    sys.path.insert(0, script_dir)

from pybind_gen import Generator, GeneratorConfig, TranslationUnit, IRError

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_PARSE = 2


def print_error(msg: str):
    print(f'\033[1;31m{msg}\033[0m', file=sys.stderr)


def print_warn(msg: str):
    print(f'  >> warning: {msg}', file=sys.stderr)


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with the invalid-argument exit status"""

    def error(self, message):
        self.print_usage(sys.stderr)
        print_error(message)
        sys.exit(EXIT_USAGE)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(description='Generate pybind11 bindings from C++ entity dumps')
    parser.add_argument('files', nargs='*', metavar='FILE',
                        help='JSON entity dump of a parsed header')
    parser.add_argument('--lib', default=None,
                        help='Name of the Python extension module (default: example)')
    parser.add_argument('--config', default=None,
                        help='JSON configuration file')
    parser.add_argument('--ignore', action='append', default=[], metavar='NAME',
                        help='Qualified name of a symbol to skip (repeatable)')
    parser.add_argument('-o', '--output', default=None,
                        help='Output file (default: stdout)')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Do not print progress')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if not args.files:
        print_error('missing file argument')
        return EXIT_USAGE

    try:
        config = GeneratorConfig.load(args.config) if args.config else GeneratorConfig()
    except (OSError, ValueError) as e:
        print_error(f'invalid configuration {args.config}: {e}')
        return EXIT_USAGE
    if args.lib:
        config.lib_name = args.lib

    gen = Generator(config)
    gen.ignore(*args.ignore)

    if not args.quiet:
        print('=== Generating pybind11 bindings:', file=sys.stderr)

    for path in args.files:
        if not os.path.isfile(path):
            print_error(f'file not found: {path}')
            return EXIT_USAGE
        if not args.quiet:
            print(f'  {path} => {config.lib_name}', file=sys.stderr)
        try:
            unit = TranslationUnit.load(path)
        except (IRError, json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            print_error(f'[fatal parsing error] {path}: {e}')
            return EXIT_PARSE
        gen.add_file(unit)

    code = gen.generate()

    for diag in gen.diagnostics:
        print_warn(str(diag))

    if args.output:
        with open(args.output, 'w', newline='\n', encoding='utf-8') as f:
            f.write(code)
    else:
        sys.stdout.write(code)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
