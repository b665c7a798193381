"""
Type stringification module

Renders entity types to C++ text, substituting template parameters when a
class template specialization is being instantiated.
"""

from typing import Optional, TYPE_CHECKING

from .codegen import tokenize, join_tokens, split_template_args

if TYPE_CHECKING:
    from .ir import TypeInfo


class SubstitutionContext:
    """Template parameter name -> argument text mapping"""

    def __init__(self, mapping: Optional[dict[str, str]] = None):
        self._mapping: dict[str, str] = dict(mapping or {})

    @classmethod
    def for_specialization(cls, parameters: list[str], arguments: str,
                           outer: Optional['SubstitutionContext'] = None) -> 'SubstitutionContext':
        """Pair the primary's parameter names with the specialization's arguments

        Arguments are split on every comma (see split_template_args), so a
        nested template argument such as `std::map<int, int>` is split apart.
        """
        mapping = dict(outer._mapping) if outer else {}
        args = split_template_args(arguments)
        if outer:
            args = [outer.substitute_text(arg) for arg in args]
        mapping.update(zip(parameters, args))
        return cls(mapping)

    def get(self, token: str) -> Optional[str]:
        return self._mapping.get(token)

    def substitute_text(self, text: str) -> str:
        return join_tokens([self._mapping.get(tok, tok) for tok in tokenize(text)])

    def __bool__(self) -> bool:
        return bool(self._mapping)


class TypeStringifier:
    """Template-aware type renderer

    Token-level and shallow: a token that exactly matches a parameter name
    is replaced by the argument text; the type structure is not rewritten.
    """

    def __init__(self, context: Optional[SubstitutionContext] = None):
        self.context = context if context is not None else SubstitutionContext()

    def render(self, type_info: 'TypeInfo') -> str:
        """Render a type to its (substituted) spelling"""
        return self.render_tokens(type_info.tokens)

    def render_tokens(self, tokens: list[str]) -> str:
        out = []
        for tok in tokens:
            replacement = self.context.get(tok)
            out.append(tok if replacement is None else replacement)
        return join_tokens(out)
