"""
Code generation utilities

Provides the line emitter and C++ text helpers used by the binding nodes.
"""

import re


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self, indent_str: str = '  '):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = indent_str
        self._comment_depth: int = 0

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        prefix = self._indent_str * self._indent
        if self._comment_depth:
            self._lines.append(prefix + ('// ' + text).rstrip())
        elif text:
            self._lines.append(prefix + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def indent(self):
        """Increase indentation"""
        self._indent += 1

    def dedent(self):
        """Decrease indentation"""
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, footer: str = '}'):
        """Context manager for code blocks"""
        return _BlockContext(self, header, footer)

    def commented(self, enabled: bool = True):
        """Context manager that turns every line emitted inside into a comment"""
        return _CommentContext(self, enabled)

    @property
    def is_commented(self) -> bool:
        return self._comment_depth > 0

    def output(self) -> str:
        """Get generated code as string"""
        return '\n'.join(self._lines) + '\n' if self._lines else ''

    def clear(self):
        """Clear all generated code"""
        self._lines.clear()
        self._indent = 0
        self._comment_depth = 0


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, footer: str):
        self._gen = gen
        self._header = header
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


class _CommentContext:

    def __init__(self, gen: CodeGen, enabled: bool):
        self._gen = gen
        self._enabled = enabled

    def __enter__(self):
        if self._enabled:
            self._gen._comment_depth += 1
        return self

    def __exit__(self, *args):
        if self._enabled:
            self._gen._comment_depth -= 1


_TOKEN_RE = re.compile(r'::|&&|[A-Za-z_]\w*|\d[\w.]*|\S')
_NON_IDENT_RE = re.compile(r'[^0-9A-Za-z]')


def tokenize(type_str: str) -> list[str]:
    """Split a C++ type spelling into tokens

    Examples:
        const char * -> ['const', 'char', '*']
        std::vector<T>&& -> ['std', '::', 'vector', '<', 'T', '>', '&&']
    """
    return _TOKEN_RE.findall(type_str)


def _is_word(text: str) -> bool:
    return bool(text) and (text[0].isalnum() or text[0] == '_')


def join_tokens(tokens: list[str]) -> str:
    """Join tokens back into a spelling

    A space goes between two word-like tokens and after a comma, nowhere
    else, so `const char *` renders as `const char*`.
    """
    out = ''
    prev = ''
    for tok in tokens:
        if out and (prev == ',' or (_is_word(prev[-1:]) and _is_word(tok))):
            out += ' '
        out += tok
        prev = tok
    return out


def sanitize_identifier(name: str) -> str:
    """Replace every non-alphanumeric character with '_'

    Examples:
        ns::Foo -> ns__Foo
        Vec<int> -> Vec_int_
    """
    return _NON_IDENT_RE.sub('_', name)


def _top_level_positions(text: str, sep: str) -> list[int]:
    """Positions of `sep` in `text` outside of angle brackets"""
    positions = []
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '<':
            depth += 1
        elif ch == '>':
            depth = max(depth - 1, 0)
        elif depth == 0 and text.startswith(sep, i):
            positions.append(i)
            i += len(sep)
            continue
        i += 1
    return positions


def unqualified_name(name: str) -> str:
    """Drop the scope of a (possibly templated) qualified name

    Examples:
        ns::Base -> Base
        ns::Vec<std::string> -> Vec<std::string>
    """
    positions = _top_level_positions(name, '::')
    if not positions:
        return name.strip()
    return name[positions[-1] + 2:].strip()


def strip_template_args(name: str) -> str:
    """Vec<int> -> Vec"""
    if '<' not in name:
        return name
    return name[:name.index('<')].strip()


def template_args_text(name: str) -> str:
    """Vec<int, float> -> 'int, float'"""
    if '<' not in name or not name.endswith('>'):
        return ''
    return name[name.index('<') + 1:-1].strip()


def split_template_args(text: str) -> list[str]:
    """Split template argument text on commas

    The split is naive: commas inside nested template arguments are not
    treated specially, so "std::map<int, int>, T" splits into three parts.
    """
    if not text.strip():
        return []
    return [arg.strip() for arg in text.split(',')]


def is_rvalue_ref(type_str: str) -> bool:
    """Check if a type spelling contains an rvalue reference"""
    return '&&' in type_str


def macro_arg(text: str) -> str:
    """Protect a type containing commas from the preprocessor

    Examples:
        Foo -> Foo
        std::map<int, int> -> PYBIND11_TYPE(std::map<int, int>)
    """
    if ',' in text:
        return f'PYBIND11_TYPE({text})'
    return text
