"""Type references as seen by the hook engine."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TypeRef:
    """A type name plus the element type when it is an array.

    ``name`` is the text as written (``BasePlayer``, ``List<int>``,
    ``Oxide.Core.Libraries.Covalence.IPlayer``). ``full_name`` is the
    namespace-qualified name when the program model knows it.
    """
    name: str
    full_name: Optional[str] = None
    element_type: Optional["TypeRef"] = None
    nullable: bool = False

    @classmethod
    def parse(cls, text: str, full_name: Optional[str] = None) -> "TypeRef":
        text = text.strip()
        nullable = False
        if text.endswith("?"):
            nullable = True
            text = text[:-1].rstrip()
        element = None
        if text.endswith("[]"):
            element = cls.parse(text[:-2])
        return cls(name=text, full_name=full_name, element_type=element, nullable=nullable)

    @property
    def is_array(self) -> bool:
        return self.element_type is not None

    @property
    def display(self) -> str:
        return f"{self.name}?" if self.nullable else self.name

    def __str__(self) -> str:
        return self.display
