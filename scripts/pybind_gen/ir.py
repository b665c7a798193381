"""
IR (Intermediate Representation) module

Reads and represents the C++ entity tree dumped by the header parser.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, ClassVar, Union
import json

from .codegen import tokenize, join_tokens


class IRError(ValueError):
    """Raised when an IR document is structurally invalid"""


class EntityKind(str, Enum):
    """Entity kinds known to the binding engine"""
    NAMESPACE = 'namespace'
    CLASS = 'class'
    CLASS_TEMPLATE = 'class_template'
    CLASS_TEMPLATE_SPECIALIZATION = 'class_template_specialization'
    FUNCTION = 'function'
    MEMBER_FUNCTION = 'member_function'
    CONSTRUCTOR = 'constructor'
    DESTRUCTOR = 'destructor'
    MEMBER_VARIABLE = 'member_variable'
    VARIABLE = 'variable'
    ACCESS_SPECIFIER = 'access_specifier'
    UNKNOWN = 'unknown'


class Access(str, Enum):
    PUBLIC = 'public'
    PROTECTED = 'protected'
    PRIVATE = 'private'


class BodyKind(str, Enum):
    DECLARATION = 'declaration'
    DEFINITION = 'definition'
    DEFAULTED = 'defaulted'
    DELETED = 'deleted'


@dataclass
class TypeInfo:
    """A C++ type as a token sequence

    `is_const` is top-level cv-qualification only. Arrays keep their
    element type in `element` so constness can be checked at any depth.
    """
    tokens: list[str]
    is_const: bool = False
    element: Optional['TypeInfo'] = None

    @property
    def spelling(self) -> str:
        return join_tokens(self.tokens)

    @property
    def is_array(self) -> bool:
        return self.element is not None

    def is_deep_const(self) -> bool:
        """Check if the type is const at any array nesting depth"""
        if self.is_const:
            return True
        if self.element is not None:
            return self.element.is_deep_const()
        return False

    @classmethod
    def from_spelling(cls, spelling: str) -> 'TypeInfo':
        """Infer structure from a plain spelling like "const int[4]" """
        tokens = tokenize(spelling)
        element = None
        if tokens and tokens[-1] == ']' and '[' in tokens:
            start = len(tokens) - 1 - tokens[::-1].index('[')
            if start > 0:
                element = cls.from_spelling(join_tokens(tokens[:start]))
        return cls(tokens=tokens, is_const=_is_top_level_const(tokens), element=element)


def _is_top_level_const(tokens: list[str]) -> bool:
    if not tokens:
        return False
    if tokens[-1] == 'const':
        return True
    # "const char *" is a pointer to const, not a const pointer
    if tokens[0] == 'const':
        return not any(t in ('*', '&', '&&', '[') for t in tokens)
    return False


@dataclass
class ParamInfo:
    """Function parameter information"""
    name: str
    type: TypeInfo


@dataclass
class VirtualInfo:
    is_virtual: bool = False
    is_pure: bool = False
    is_override: bool = False
    is_final: bool = False


@dataclass
class BaseSpec:
    """A base-class reference as written in a class head"""
    name: str
    ref: str = ''
    access: Access = Access.PUBLIC
    arguments: Optional[str] = None


@dataclass
class Entity:
    """Common part of every entity"""
    kind: ClassVar[EntityKind] = EntityKind.UNKNOWN
    name: str
    id: str = ''

    @property
    def kind_name(self) -> str:
        return self.kind.value


@dataclass
class NamespaceEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.NAMESPACE
    children: list[Entity] = field(default_factory=list)


@dataclass
class ClassEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.CLASS
    class_kind: str = 'class'
    is_final: bool = False
    bases: list[BaseSpec] = field(default_factory=list)
    children: list[Entity] = field(default_factory=list)

    @property
    def default_access(self) -> Access:
        """Members of a `class` start private, `struct`/`union` start public"""
        return Access.PRIVATE if self.class_kind == 'class' else Access.PUBLIC


@dataclass
class ClassTemplateEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.CLASS_TEMPLATE
    parameters: list[str] = field(default_factory=list)
    body: Optional[ClassEntity] = None


@dataclass
class SpecializationEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.CLASS_TEMPLATE_SPECIALIZATION
    primary: str = ''
    arguments: str = ''


@dataclass
class FunctionEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.FUNCTION
    return_type: TypeInfo = field(default_factory=lambda: TypeInfo(['void']))
    params: list[ParamInfo] = field(default_factory=list)
    body_kind: BodyKind = BodyKind.DECLARATION
    is_static: bool = False

    @property
    def is_deleted(self) -> bool:
        return self.body_kind == BodyKind.DELETED


@dataclass
class MemberFunctionEntity(FunctionEntity):
    kind: ClassVar[EntityKind] = EntityKind.MEMBER_FUNCTION
    virtual: VirtualInfo = field(default_factory=VirtualInfo)
    is_const: bool = False


@dataclass
class ConstructorEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.CONSTRUCTOR
    params: list[ParamInfo] = field(default_factory=list)
    body_kind: BodyKind = BodyKind.DECLARATION

    @property
    def is_deleted(self) -> bool:
        return self.body_kind == BodyKind.DELETED


@dataclass
class DestructorEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.DESTRUCTOR


@dataclass
class MemberVariableEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.MEMBER_VARIABLE
    type: TypeInfo = field(default_factory=lambda: TypeInfo(['int']))


@dataclass
class VariableEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.VARIABLE
    type: TypeInfo = field(default_factory=lambda: TypeInfo(['int']))
    storage_class: str = 'none'

    @property
    def is_static(self) -> bool:
        return self.storage_class == 'static'


@dataclass
class AccessSpecifierEntity(Entity):
    kind: ClassVar[EntityKind] = EntityKind.ACCESS_SPECIFIER
    access: Access = Access.PUBLIC


@dataclass
class UnknownEntity(Entity):
    """An entity the engine has no binding for; kept so it can be reported"""
    raw_kind: str = 'unknown'

    @property
    def kind_name(self) -> str:
        return self.raw_kind


class EntityIndex:
    """Global id -> entity lookup for one translation unit"""

    def __init__(self):
        self._entities: dict[str, Entity] = {}

    def register(self, entity: Entity):
        if entity.id:
            self._entities[entity.id] = entity

    def lookup(self, entity_id: str) -> Optional[Entity]:
        if not entity_id:
            return None
        return self._entities.get(entity_id)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)


@dataclass
class TranslationUnit:
    """One parsed header: its top-level entities and its own index"""
    path: str
    entities: list[Entity]
    index: EntityIndex

    @classmethod
    def load(cls, json_path: str) -> 'TranslationUnit':
        """Load a translation unit from a JSON file"""
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'TranslationUnit':
        """Create a translation unit from a dictionary"""
        if not isinstance(data, dict):
            raise IRError('IR document must be an object')
        if 'file' not in data:
            raise IRError("IR document has no 'file' entry")
        index = EntityIndex()
        entities = [_parse_entity(decl, index) for decl in data.get('entities', [])]
        return cls(path=data['file'], entities=entities, index=index)


TypeData = Union[str, dict]


def _parse_type(data: Optional[TypeData]) -> TypeInfo:
    if data is None:
        return TypeInfo(['void'])
    if isinstance(data, str):
        return TypeInfo.from_spelling(data)
    if not isinstance(data, dict):
        raise IRError(f'invalid type: {data!r}')
    inferred = TypeInfo.from_spelling(data.get('spelling', ''))
    tokens = data.get('tokens') or inferred.tokens
    element = _parse_type(data['element']) if 'element' in data else inferred.element
    return TypeInfo(
        tokens=list(tokens),
        is_const=data.get('const', inferred.is_const),
        element=element,
    )


def _parse_params(decl: dict) -> list[ParamInfo]:
    return [ParamInfo(name=p.get('name', ''), type=_parse_type(p.get('type')))
            for p in decl.get('params', [])]


def _parse_body_kind(decl: dict) -> BodyKind:
    try:
        return BodyKind(decl.get('body_kind', 'declaration'))
    except ValueError:
        raise IRError(f"invalid body_kind {decl.get('body_kind')!r}") from None


def _parse_children(decl: dict, index: EntityIndex) -> list[Entity]:
    return [_parse_entity(child, index) for child in decl.get('children', [])]


def _parse_class(decl: dict, index: EntityIndex) -> ClassEntity:
    bases = []
    for b in decl.get('bases', []):
        if isinstance(b, str):
            bases.append(BaseSpec(name=b))
            continue
        bases.append(BaseSpec(
            name=b['name'],
            ref=b.get('ref', ''),
            access=Access(b.get('access', 'public')),
            arguments=b.get('arguments'),
        ))
    return ClassEntity(
        name=decl['name'],
        id=decl.get('id', ''),
        class_kind=decl.get('class_kind', 'class'),
        is_final=decl.get('is_final', False),
        bases=bases,
        children=_parse_children(decl, index),
    )


def _parse_entity(decl: dict, index: EntityIndex) -> Entity:
    """Parse one entity (and its subtree), registering ids in the index"""
    if not isinstance(decl, dict) or 'kind' not in decl:
        raise IRError(f'invalid entity: {decl!r}')
    kind = decl['kind']
    name = decl.get('name', '')
    entity_id = decl.get('id', '')

    try:
        if kind == 'namespace':
            entity = NamespaceEntity(name=name, id=entity_id,
                                     children=_parse_children(decl, index))

        elif kind == 'class':
            entity = _parse_class(decl, index)

        elif kind == 'class_template':
            body = decl.get('class')
            if body is not None and 'name' not in body:
                body = dict(body, name=name)
            entity = ClassTemplateEntity(
                name=name,
                id=entity_id,
                parameters=list(decl.get('parameters', [])),
                body=_parse_class(body, index) if body else None,
            )

        elif kind == 'class_template_specialization':
            entity = SpecializationEntity(
                name=name,
                id=entity_id,
                primary=decl.get('primary', ''),
                arguments=decl.get('arguments', ''),
            )

        elif kind in ('function', 'member_function'):
            common = dict(
                name=name,
                id=entity_id,
                return_type=_parse_type(decl.get('return_type')),
                params=_parse_params(decl),
                body_kind=_parse_body_kind(decl),
                is_static=decl.get('is_static', False),
            )
            if kind == 'function':
                entity = FunctionEntity(**common)
            else:
                vi = decl.get('virtual') or {}
                if not isinstance(vi, dict):
                    raise IRError(f'invalid virtual info: {vi!r}')
                entity = MemberFunctionEntity(
                    **common,
                    virtual=VirtualInfo(
                        is_virtual=vi.get('is_virtual', False),
                        is_pure=vi.get('is_pure', False),
                        is_override=vi.get('is_override', False),
                        is_final=vi.get('is_final', False),
                    ),
                    is_const=decl.get('is_const', False),
                )

        elif kind == 'constructor':
            entity = ConstructorEntity(name=name, id=entity_id,
                                       params=_parse_params(decl),
                                       body_kind=_parse_body_kind(decl))

        elif kind == 'destructor':
            entity = DestructorEntity(name=name, id=entity_id)

        elif kind == 'member_variable':
            entity = MemberVariableEntity(name=name, id=entity_id,
                                          type=_parse_type(decl.get('type')))

        elif kind == 'variable':
            entity = VariableEntity(name=name, id=entity_id,
                                    type=_parse_type(decl.get('type')),
                                    storage_class=decl.get('storage_class', 'none'))

        elif kind == 'access_specifier':
            entity = AccessSpecifierEntity(name=name, id=entity_id,
                                           access=Access(decl.get('access', 'public')))

        else:
            entity = UnknownEntity(name=name, id=entity_id, raw_kind=kind)

    except KeyError as e:
        raise IRError(f'{kind} entity is missing {e}') from None
    except ValueError as e:
        if isinstance(e, IRError):
            raise
        raise IRError(f'{kind} entity {name!r}: {e}') from None

    index.register(entity)
    return entity
