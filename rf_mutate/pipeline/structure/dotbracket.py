# rf_mutate/pipeline/structure/dotbracket.py
"""
Dot-bracket helpers: pair tables, helix tables and base-pair distances.

All coordinates are 0-based. Bracket types are matched independently, so
pseudoknotted structures written with `[]`, `{}` or `<>` are accepted.
"""

from typing import Dict, List, Tuple

BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
CLOSING_BRACKETS = {close: open_ for open_, close in BRACKET_PAIRS.items()}
UNPAIRED = "."
STRUCTURE_ALPHABET = set(BRACKET_PAIRS) | set(CLOSING_BRACKETS) | {UNPAIRED}


def parse_pairs(structure: str) -> Dict[int, int]:
    """
    Build the symmetric base-pair map of a dot-bracket string.

    Args:
        structure: Dot-bracket string

    Returns:
        Dictionary mapping every paired position to its partner (i -> j and j -> i)

    Raises:
        ValueError: If the structure contains illegal characters or is unbalanced
    """
    stacks: Dict[str, List[int]] = {open_: [] for open_ in BRACKET_PAIRS}
    pairs: Dict[int, int] = {}
    for pos, char in enumerate(structure):
        if char in BRACKET_PAIRS:
            stacks[char].append(pos)
        elif char in CLOSING_BRACKETS:
            stack = stacks[CLOSING_BRACKETS[char]]
            if not stack:
                raise ValueError(f"Unbalanced structure: unmatched '{char}' at position {pos}")
            partner = stack.pop()
            pairs[partner] = pos
            pairs[pos] = partner
        elif char != UNPAIRED:
            raise ValueError(f"Illegal character '{char}' at position {pos}")
    for open_, stack in stacks.items():
        if stack:
            raise ValueError(f"Unbalanced structure: unmatched '{open_}' at position {stack[0]}")
    return pairs


def is_valid_structure(structure: str) -> bool:
    try:
        parse_pairs(structure)
    except ValueError:
        return False
    return True


def pair_table(structure: str) -> List[int]:
    """Partner of every position, -1 for unpaired positions."""
    pairs = parse_pairs(structure)
    return [pairs.get(pos, -1) for pos in range(len(structure))]


def base_pairs(structure: str) -> List[Tuple[int, int]]:
    """Sorted list of (i, j) pairs with i < j."""
    pairs = parse_pairs(structure)
    return sorted((i, j) for i, j in pairs.items() if i < j)


def list_helices(structure: str) -> Dict[int, int]:
    """
    Helix table of a structure.

    A helix is a maximal run of stacked pairs (i, j), (i+1, j-1), ... The table
    maps the 5'-most paired position of each helix to its partner, the 3'-most
    paired position of the same helix.
    """
    pairs = parse_pairs(structure)
    helices: Dict[int, int] = {}
    for i in sorted(pairs):
        j = pairs[i]
        if j < i:
            continue
        # (i-1, j+1) stacking on (i, j) means i is inside an already opened helix
        if i > 0 and pairs.get(i - 1) == j + 1:
            continue
        helices[i] = j
    return helices


def restrict_structure(structure: str, start: int, end: int) -> str:
    """
    Slice a structure to [start, end] (inclusive), unpairing every position
    whose partner falls outside the slice.
    """
    table = pair_table(structure)
    restricted = []
    for pos in range(start, end + 1):
        partner = table[pos]
        if partner != -1 and not start <= partner <= end:
            restricted.append(UNPAIRED)
        else:
            restricted.append(structure[pos])
    return "".join(restricted)


def pad_structure(structure: str, length: int) -> str:
    """Right-pad a structure with unpaired positions up to `length`."""
    if len(structure) >= length:
        return structure
    return structure + UNPAIRED * (length - len(structure))


def bp_distance(structure_a: str, structure_b: str) -> int:
    """
    Positional base-pair distance: number of positions whose partner (or
    unpaired state) differs between two structures of equal length.
    """
    if len(structure_a) != len(structure_b):
        raise ValueError(
            f"Structures must have equal length, got {len(structure_a)} and {len(structure_b)}"
        )
    table_a = pair_table(structure_a)
    table_b = pair_table(structure_b)
    return sum(1 for a, b in zip(table_a, table_b) if a != b)
