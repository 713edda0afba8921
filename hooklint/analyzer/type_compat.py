"""Type compatibility between a method parameter and a catalogued parameter type."""
from typing import Dict, Iterable, Optional

from .program_model import ProgramModel, simple_type_name
from .signature import split_top_level
from .type_ref import TypeRef


# C# keyword aliases -> CLR type names
TYPE_ALIASES: Dict[str, str] = {
    "bool": "Boolean",
    "byte": "Byte",
    "sbyte": "SByte",
    "char": "Char",
    "decimal": "Decimal",
    "double": "Double",
    "float": "Single",
    "int": "Int32",
    "uint": "UInt32",
    "long": "Int64",
    "ulong": "UInt64",
    "object": "Object",
    "short": "Int16",
    "ushort": "UInt16",
    "string": "String",
}

ROOT_TYPE = "Object"


def normalize_type_name(name: str) -> str:
    """Canonical form used for every name comparison.

    Strips a nullable marker and namespace qualifiers, maps keyword aliases
    to CLR names, and applies the same rules to generic arguments and array
    element types.

    Args:
        name: Type name as written, e.g. ``System.Collections.Generic.List<int>?``

    Returns:
        Normalized name, e.g. ``List<Int32>``
    """
    name = (name or "").strip()
    if name.endswith("?"):
        name = name[:-1].rstrip()
    if name.endswith("[]"):
        return normalize_type_name(name[:-2]) + "[]"

    open_bracket = name.find("<")
    if open_bracket > 0 and name.endswith(">"):
        head = normalize_type_name(name[:open_bracket])
        args = split_top_level(name[open_bracket + 1:-1])
        return f"{head}<{', '.join(normalize_type_name(a) for a in args)}>"

    simple = simple_type_name(name)
    return TYPE_ALIASES.get(simple, simple)


class TypeCompatibility:
    """Decides whether a concrete parameter type satisfies a catalogued one.

    Compatibility holds in either direction of the hierarchy: the actual type
    may derive from (or implement) the expected type, or the expected type,
    when the program model can resolve it, may derive from the actual type.
    """

    def __init__(self, program: Optional[ProgramModel] = None):
        self.program = program

    def compatible(self, actual: TypeRef, expected_name: str) -> bool:
        """Check one parameter position.

        Args:
            actual: Resolved type of the candidate method's parameter
            expected_name: Type text from the hook catalog

        Returns:
            True if the types are compatible; False otherwise, including when
            the program model fails to resolve something
        """
        try:
            return self._compatible(actual, expected_name)
        except LookupError:
            return False

    def _compatible(self, actual: TypeRef, expected_name: str) -> bool:
        expected = normalize_type_name(expected_name)
        actual_name = normalize_type_name(actual.name)

        if actual.is_array and expected.endswith("[]"):
            return self._compatible(actual.element_type, expected[:-2])

        if actual_name == expected:
            return True
        if expected == ROOT_TYPE:
            return True
        if self.program is None:
            return False

        # actual is-a expected
        if self._names_contain(self._supertypes(actual), expected):
            return True

        # expected is-a actual
        expected_type = self.program.find_type(expected) or self.program.find_type(expected_name)
        if expected_type is not None:
            return self._names_contain(self._supertypes(expected_type), actual_name)
        return False

    def _supertypes(self, type_ref: TypeRef):
        return self.program.base_chain(type_ref) + self.program.interfaces(type_ref)

    @staticmethod
    def _names_contain(types: Iterable[TypeRef], normalized: str) -> bool:
        for candidate in types:
            if normalize_type_name(candidate.name) == normalized:
                return True
            if candidate.full_name and normalize_type_name(candidate.full_name) == normalized:
                return True
        return False
