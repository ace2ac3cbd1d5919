"""
Short, readable names for fixtures and tests.
"""

from typing import List, Optional, Tuple


def split_assembly_qualified_name(class_name: str) -> Tuple[str, str]:
    """
    Split an assembly qualified type name into type name and assembly name.

    Trailing "key=value" segments (Version, Culture, PublicKeyToken) are
    dropped. A generic type such as ``Ns.Pair<T1,T2>`` is never split.

    Args:
        class_name: Bare, generic or assembly qualified type name

    Returns:
        (type_name, assembly_name); assembly_name is "" when there is none
    """
    segments: List[str] = class_name.split(",")[::-1]
    while segments and "=" in segments[0]:
        segments.pop(0)

    if len(segments) > 1 and ">" not in segments[0]:
        return ",".join(reversed(segments[1:])), segments[0].strip()
    return ",".join(reversed(segments)), ""


def strip_namespace_prefix(type_name: str, prefix: str) -> str:
    """Remove a leading "prefix." or everything through the last ".prefix."."""
    if not prefix:
        return type_name
    if type_name.startswith(prefix + "."):
        return type_name[len(prefix) + 1:]
    marker = f".{prefix}."
    if marker in type_name:
        return type_name.rsplit(marker, 1)[-1]
    return type_name


def fixture_name(class_name: Optional[str], file_stem: str) -> str:
    """
    Derive a fixture grouping key from a test class name.

    Both the result file's base name and the class's assembly name are
    tried as redundant namespace prefixes; the shorter result wins, the
    file-based one on a tie.

    Args:
        class_name: Type name from the test definition
        file_stem: Result file name without directory or extension

    Returns:
        Shortened type name, or "" when class_name is None
    """
    if class_name is None:
        return ""

    type_name, assembly_name = split_assembly_qualified_name(class_name)
    candidates = [strip_namespace_prefix(type_name, prefix) for prefix in (file_stem, assembly_name)]
    return min(candidates, key=len)


def strip_test_name_prefix(test_name: str, file_stem: str) -> str:
    """Drop a leading "<file_stem>." from a test name."""
    if file_stem and test_name.startswith(file_stem + "."):
        return test_name[len(file_stem) + 1:]
    return test_name
