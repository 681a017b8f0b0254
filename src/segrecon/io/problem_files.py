"""
Text files exchanged with the structured learning tools.

labels.txt          one line per variable: `<0|1> # <segment hash>`
ted_coefficients    one line per variable: `<var> <coef> # <hash> [gs fs fm fp fn]`
cost_function.txt   `numVar N`, then `c<i> <coef>` per variable, then `constant C`
flipped.txt         `<hash> : <hash> <hash> ...`, hashes flipped together
ted_conditions.txt  one line per variable: variables flipped together with it
"""

import logging
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from ..core.exceptions import FileFormatError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _check_exists(path: Path) -> None:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")


def write_labels(labels: Sequence[Tuple[int, int]], path: PathLike) -> None:
    """
    Args:
        labels: (label, segment hash) per variable, in variable order
        path: Output file
    """
    with open(path, 'w') as f:
        for label, segment_hash in labels:
            f.write(f"{int(label)} # {segment_hash}\n")
    logger.info(f"Wrote {len(labels)} labels to {path}")


def read_labels(path: PathLike) -> List[Tuple[int, int]]:
    """
    Returns:
        (label, segment hash) per variable, in file order

    Raises:
        FileNotFoundError: If the file does not exist
        FileFormatError: If a line is not `<0|1> # <hash>`
    """
    path = Path(path)
    _check_exists(path)
    labels = []
    with open(path, 'r') as f:
        for line_number, line in enumerate(f, start=1):
            tokens = line.split()
            if not tokens:
                continue
            if len(tokens) < 3 or tokens[1] != '#':
                raise FileFormatError(path, line_number, f"expected '<label> # <hash>', got '{line.strip()}'")
            try:
                labels.append((int(tokens[0]), int(tokens[2])))
            except ValueError:
                raise FileFormatError(path, line_number, f"invalid number in '{line.strip()}'")
    return labels


def read_ted_coefficients(path: PathLike,
                          just_copy: bool = False,
                          weight_splits: float = 1.0,
                          weight_merges: float = 1.0) -> Dict[int, float]:
    """
    Read per-segment coefficients of a TED evaluation.

    Unless `just_copy` is set, the coefficient is recomputed from the error
    counts as (1 - 2 gs) * (weight_splits * (fs + fp) + weight_merges * (fm + fn)),
    so that errors count positively for segments outside the gold standard and
    negatively for those in it.

    Returns:
        Coefficient per segment hash

    Raises:
        FileNotFoundError: If the file does not exist
        FileFormatError: If a line is malformed
    """
    path = Path(path)
    _check_exists(path)
    coefficients = {}
    with open(path, 'r') as f:
        for line_number, line in enumerate(f, start=1):
            tokens = line.split()
            if not tokens or tokens[0] in ('numVar', 'constant') or tokens[0].startswith('#'):
                continue
            if len(tokens) < 4 or tokens[2] != '#':
                raise FileFormatError(path, line_number,
                                      f"expected '<var> <coef> # <hash> ...', got '{line.strip()}'")
            try:
                segment_hash = int(tokens[3])
                if just_copy:
                    coefficients[segment_hash] = float(tokens[1])
                    continue
                gs, fs, fm, fp, fn = (float(t) for t in tokens[4:9])
            except ValueError:
                raise FileFormatError(path, line_number, f"invalid number in '{line.strip()}'")
            coefficients[segment_hash] = (-2 * gs + 1) * (weight_splits * (fs + fp) + weight_merges * (fm + fn))
    return coefficients


def write_cost_function(hashes: Sequence[int], coefficients: Dict[int, float], path: PathLike) -> float:
    """
    Write the coefficients of the given variables.

    The constant sums up the magnitude of all negative coefficients.

    Args:
        hashes: Segment hash per variable, in variable order
        coefficients: Coefficient per segment hash; missing hashes get 0
        path: Output file

    Returns:
        The constant
    """
    constant = 0.0
    missing = 0
    with open(path, 'w') as f:
        f.write(f"numVar {len(hashes)}\n")
        for variable, segment_hash in enumerate(hashes):
            if segment_hash not in coefficients:
                missing += 1
            coefficient = coefficients.get(segment_hash, 0.0)
            f.write(f"c{variable} {coefficient:g}\n")
            if coefficient < 0:
                constant += -coefficient
        f.write(f"constant {constant:g}\n")
    if missing:
        logger.warning(f"No coefficient for {missing} of {len(hashes)} variables, using 0")
    logger.info(f"Wrote cost function of {len(hashes)} variables to {path}")
    return constant


def read_flips(path: PathLike) -> Dict[int, List[int]]:
    """
    Returns:
        For each flipped segment hash, the hashes flipped together with it

    Raises:
        FileNotFoundError: If the file does not exist
        FileFormatError: If a line has no ':' after the first hash
    """
    path = Path(path)
    _check_exists(path)
    flips: Dict[int, List[int]] = {}
    with open(path, 'r') as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip() or line.startswith('#'):
                continue
            head, colon, rest = line.partition(":")
            if not colon:
                raise FileFormatError(path, line_number, f"expected '<hash> : <hashes>', got '{line.strip()}'")
            try:
                flips.setdefault(int(head), []).extend(int(t) for t in rest.split())
            except ValueError:
                raise FileFormatError(path, line_number, f"invalid hash in '{line.strip()}'")
    return flips


def write_ted_conditions(hashes: Sequence[int], flips: Dict[int, List[int]], path: PathLike) -> None:
    """
    Write, for every variable, the variables flipped together with it.

    Hashes without a variable are reported and skipped; they usually belong
    to a larger problem than the one described by the labels.
    """
    variables = {segment_hash: variable for variable, segment_hash in enumerate(hashes)}
    with open(path, 'w') as f:
        for segment_hash in hashes:
            partners = []
            for partner in flips.get(segment_hash, []):
                if partner not in variables:
                    logger.warning(f"Can not find variable number for segment with hash {partner}")
                    continue
                partners.append(str(variables[partner]))
            f.write(" ".join(partners) + "\n")
    logger.info(f"Wrote conditions of {len(hashes)} variables to {path}")
