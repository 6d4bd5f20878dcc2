#!/usr/bin/env python3
"""
Name: cat
Description: concatenate and print files
License: perl
"""

import sys
import argparse

# Constants
EX_SUCCESS = 0
EX_FAILURE = 1
VERSION = '0.2.0'
STDIN_NAME = '-'
NUMBER_WIDTH = 6


class CatOptions:
    """
    The validated settings the line transformer works from.

    Alias flags (-A, -e, -t) are folded into the three display flags once,
    in from_args(), so the per-line code only ever sees six plain booleans.
    """
    def __init__(self, files=None, number=False, number_nonblank=False,
                 show_tabs=False, show_ends=False, show_nonprinting=False,
                 squeeze_blank=False):
        if number and number_nonblank:
            raise ValueError("cannot number all lines and non-blank lines at the same time")

        self.files = list(files) if files else [STDIN_NAME]
        self.number = number
        self.number_nonblank = number_nonblank
        self.show_tabs = show_tabs
        self.show_ends = show_ends
        self.show_nonprinting = show_nonprinting
        self.squeeze_blank = squeeze_blank

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'CatOptions':
        """Builds options from a parsed command line, expanding the alias flags."""
        return cls(
            files=args.files,
            number=args.number,
            number_nonblank=args.number_nonblank,
            show_tabs=args.show_tabs or args.show_all or args.vt,
            show_ends=args.show_ends or args.show_all or args.ve,
            show_nonprinting=(args.show_nonprinting or args.show_all
                              or args.ve or args.vt),
            squeeze_blank=args.squeeze_blank,
        )

    def __repr__(self):
        flags = ', '.join(f"{name}={getattr(self, name)}" for name in (
            'number', 'number_nonblank', 'show_tabs', 'show_ends',
            'show_nonprinting', 'squeeze_blank'))
        return f"CatOptions(files={self.files!r}, {flags})"


# --- Input sources ---

class LineSource:
    """
    A readable sequence of decoded lines, in file order, with the line
    terminator stripped from each one.
    """
    def __init__(self, name, stream):
        self.name = name
        self.stream = stream

    def __iter__(self):
        for line in self.stream:
            # Only '\n' ends a line; a '\r' is dropped only as part of CRLF.
            if line.endswith('\n'):
                line = line[:-1]
                if line.endswith('\r'):
                    line = line[:-1]
            yield line

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False


class FileSource(LineSource):
    """A named file. Opening it is the only step that may fail."""
    def __init__(self, name):
        # newline='\n' keeps a bare '\r' inside the line instead of splitting on it.
        super().__init__(name, open(name, 'r', encoding='utf-8', newline='\n'))

    def close(self):
        self.stream.close()


class StdinSource(LineSource):
    """Standard input. Never fails to open and is never closed by us."""
    def __init__(self, stream=None):
        super().__init__(STDIN_NAME, stream if stream is not None else sys.stdin)


def open_source(name: str, stdin=None) -> LineSource:
    """Returns the source for an input identifier; raises OSError if a file can't be opened."""
    if name == STDIN_NAME:
        return StdinSource(stdin)
    return FileSource(name)


# --- Line transformation ---

def escape_nonprinting(line: str) -> str:
    """
    Rewrites control and high-range characters in caret/meta notation.

    U+0001-U+001E become ^A..^^, DEL becomes ^?, and U+0080-U+00FF become
    'M-' followed by the decimal code point (M-128 .. M-255), not the
    meta-shifted glyph that BSD/GNU cat print.
    """
    result = []
    for char in line:
        val = ord(char)
        if 0x01 <= val <= 0x1E:
            result.append(f'^{chr(val + 0x40)}')
        elif val == 0x7F:
            result.append('^?')
        elif 0x80 <= val <= 0xFF:
            result.append(f'M-{val}')
        else:
            result.append(char)
    return "".join(result)


def transform_line(line: str, opts: CatOptions) -> str:
    """Applies the character-level options (-T, -E, -v) to one line, in that order."""
    if opts.show_tabs:
        line = line.replace('\t', '^I')

    if opts.show_ends:
        line += '$'

    if opts.show_nonprinting:
        line = escape_nonprinting(line)

    return line


class CatProcessor:
    """Runs every input through the line pipeline and remembers whether any input failed."""
    def __init__(self, opts: CatOptions, out=None, err=None, stdin=None):
        self.opts = opts
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.stdin = stdin
        self.had_errors = False

    @property
    def exit_status(self) -> int:
        return EX_FAILURE if self.had_errors else EX_SUCCESS

    def run(self) -> int:
        """
        Processes all inputs in order.

        A file that can't be opened is reported and skipped. An error while
        reading an opened input is reported and ends the run.
        """
        for name in self.opts.files:
            try:
                source = open_source(name, self.stdin)
            except OSError as e:
                print(f"{name}: {e.strerror or e}", file=self.err)
                self.had_errors = True
                continue

            try:
                with source:
                    self.process_source(source)
            except (OSError, UnicodeDecodeError) as e:
                # Failing mid-read is fatal: the remaining inputs are not attempted.
                print(f"{name}: {e}", file=self.err)
                self.had_errors = True
                break

        return self.exit_status

    def process_source(self, source: LineSource):
        """Streams one input to the output; counters start fresh for every input."""
        opts = self.opts
        nonblank_count = 0
        previous_blank = False

        for index, line in enumerate(source):
            is_blank = not line

            if opts.squeeze_blank:
                if is_blank and previous_blank:
                    continue
                previous_blank = is_blank

            text = transform_line(line, opts)

            if opts.number:
                text = f"{index + 1:{NUMBER_WIDTH}d}\t{text}"
            elif opts.number_nonblank:
                if is_blank:
                    # Blank input lines come out bare, even under -E.
                    text = ""
                else:
                    nonblank_count += 1
                    text = f"{nonblank_count:{NUMBER_WIDTH}d}\t{text}"

            print(text, file=self.out, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Concatenate files and print them on the standard output.",
        usage="%(prog)s [-AbeEnstTuv] [file ...]",
        epilog="With no file, or when file is -, read standard input."
    )
    parser.add_argument('-A', '--show-all', dest='show_all', action='store_true',
                        help='Equivalent to -vET.')
    # -n and -b pick different numbering schemes; only one may be given.
    numbering = parser.add_mutually_exclusive_group()
    numbering.add_argument('-b', '--number-nonblank', dest='number_nonblank', action='store_true',
                           help='Number non-empty output lines.')
    parser.add_argument('-e', dest='ve', action='store_true', help='Equivalent to -vE.')
    parser.add_argument('-E', '--show-ends', dest='show_ends', action='store_true',
                        help='Display $ at end of each line.')
    numbering.add_argument('-n', '--number', dest='number', action='store_true',
                           help='Number all output lines.')
    parser.add_argument('-s', '--squeeze-blank', dest='squeeze_blank', action='store_true',
                        help='Suppress repeated empty output lines.')
    parser.add_argument('-t', dest='vt', action='store_true', help='Equivalent to -vT.')
    parser.add_argument('-T', '--show-tabs', dest='show_tabs', action='store_true',
                        help='Display TAB characters as ^I.')
    parser.add_argument('-u', action='store_true', help='(ignored)')
    parser.add_argument('-v', '--show-nonprinting', dest='show_nonprinting', action='store_true',
                        help='Use ^ and M- notation, except for LFD.')
    parser.add_argument('-V', '--version', action='version', version=f'%(prog)s {VERSION}')

    parser.add_argument('files', nargs='*', default=[STDIN_NAME],
                        help='Files to process. Reads from stdin if none are given.')
    return parser


def main(argv=None):
    """Parses arguments and runs the cat logic."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        opts = CatOptions.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    sys.exit(CatProcessor(opts).run())


if __name__ == "__main__":
    main()
