"""Reading XCSP3 instance files and driving the CHR callbacks."""

from __future__ import annotations

import contextlib
import re
import sys
import xml.etree.ElementTree as ET
from copy import deepcopy
from itertools import groupby, product
from pathlib import Path
from typing import Callable, Iterable

from .builder import CHRStructBuilder
from .callbacks import CHRCallbacks
from .model import OrderType, XCondition, XVariable, parse_expression

_NAME_RE = re.compile(r"([^/\\]+)(?=\.[^/\\]+$)")
_INDEX_RE = re.compile(r"\[([^\]]*)\]")
_SIZE_RE = re.compile(r"\[(\d+)\]")
_CONDITION_RE = re.compile(r"\(\s*(\w+)\s*,\s*([+-]?\d+)\s*\)")
_REPEAT_RE = re.compile(r"([+-]?\d+)x(\d+)")
_INTEGER_RE = re.compile(r"[+-]?\d+")
_PLACEHOLDER_RE = re.compile(r"%(\d+|\.\.\.)")
_ROW_RE = re.compile(r"\(([^)]*)\)")

OUTPUT_DIR = Path("out")


def instance_name(file_path: str | Path) -> str:
    """Return the file name of an instance without its extension."""
    match = _NAME_RE.search(str(file_path))
    if match is None:
        raise ValueError(f"cannot derive an instance name from {str(file_path)!r}")
    return match.group(1)


def _parse_domain(text: str | None) -> list[tuple[int, int]]:
    pieces: list[tuple[int, int]] = []
    for token in (text or "").split():
        if ".." in token:
            low, high = token.split("..", 1)
            pieces.append((int(low), int(high)))
        else:
            value = int(token)
            pieces.append((value, value))
    if not pieces:
        raise ValueError("empty domain")
    merged: list[tuple[int, int]] = []
    for low, high in sorted(pieces):
        if merged and low <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], high))
        else:
            merged.append((low, high))
    return merged


def _integers(text: str | None) -> list[int]:
    values: list[int] = []
    for token in (text or "").split():
        repeat = _REPEAT_RE.fullmatch(token)
        if repeat:
            values.extend([int(repeat.group(1))] * int(repeat.group(2)))
        else:
            values.append(int(token))
    return values


def _parse_condition(text: str | None) -> XCondition:
    match = _CONDITION_RE.fullmatch((text or "").strip())
    if match is None:
        raise ValueError(f"unsupported condition {text!r}")
    try:
        op = OrderType(match.group(1))
    except ValueError:
        raise ValueError(f"unknown operator in condition {text!r}") from None
    return XCondition(op, int(match.group(2)))


def _instantiate(template: ET.Element, values: list[str]) -> ET.Element:
    """Copy a group template with ``%i`` and ``%...`` replaced by arguments."""
    used = [
        int(index)
        for elem in template.iter()
        for index in re.findall(r"%(\d+)", elem.text or "")
    ]
    rest = " ".join(values[max(used) + 1:] if used else values)

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key == "...":
            return rest
        index = int(key)
        if index >= len(values):
            raise ValueError(f"group argument %{index} missing in {values!r}")
        return values[index]

    copy = deepcopy(template)
    for elem in copy.iter():
        if elem.text:
            elem.text = _PLACEHOLDER_RE.sub(substitute, elem.text)
    return copy


class _InstanceReader:
    """Walks the XML tree of an instance and reports it to the callbacks."""

    def __init__(self, callbacks: CHRCallbacks) -> None:
        self.callbacks = callbacks
        self.arrays: dict[str, tuple[int, ...]] = {}
        self.domains: dict[str, list[tuple[int, int]]] = {}
        self.handlers: dict[str, Callable[[ET.Element], None]] = {
            "intension": self._intension,
            "allDifferent": self._all_different,
            "instantiation": self._instantiation,
            "sum": self._sum,
            "group": self._group,
            "block": self._block,
        }

    def read(self, root: ET.Element) -> None:
        if root.tag != "instance":
            raise ValueError(f"expected <instance> but found <{root.tag}>")
        self.callbacks.begin_instance(root.get("type", "CSP"))
        variables = root.find("variables")
        if variables is not None:
            self._variables(variables)
        constraints = root.find("constraints")
        if constraints is not None:
            self._constraints(constraints)
        self.callbacks.end_instance()

    # Variables

    def _variables(self, container: ET.Element) -> None:
        for elem in container:
            if elem.tag == "var":
                name = elem.get("id")
                if not name:
                    raise ValueError("variable without id")
                alias = elem.get("as")
                if alias is not None:
                    try:
                        pieces = self.domains[alias]
                    except KeyError:
                        raise ValueError(f"unknown variable {alias!r}") from None
                else:
                    pieces = _parse_domain(elem.text)
                self._declare(name, pieces)
            elif elem.tag == "array":
                self._array(elem)
            else:
                raise ValueError(f"unsupported variable element <{elem.tag}>")

    def _array(self, elem: ET.Element) -> None:
        base = elem.get("id")
        if not base:
            raise ValueError("array without id")
        shape = tuple(int(size) for size in _SIZE_RE.findall(elem.get("size", "")))
        if not shape:
            raise ValueError(f"array {base!r} has no size")
        self.arrays[base] = shape
        names = [
            base + "".join(f"[{i}]" for i in index)
            for index in product(*(range(size) for size in shape))
        ]
        default: list[tuple[int, int]] | None = None
        specific: dict[str, list[tuple[int, int]]] = {}
        children = elem.findall("domain")
        if not children:
            default = _parse_domain(elem.text)
        for child in children:
            pieces = _parse_domain(child.text)
            targets = child.get("for", "").split()
            if targets == ["others"]:
                default = pieces
                continue
            for token in targets:
                specific.update((name, pieces) for name in self._expand(token))
        for name in names:
            pieces = specific.get(name, default)
            if pieces is None:
                raise ValueError(f"no domain given for {name!r}")
            self._declare(name, pieces)

    def _declare(self, name: str, pieces: list[tuple[int, int]]) -> None:
        self.domains[name] = pieces
        if len(pieces) == 1:
            low, high = pieces[0]
            self.callbacks.build_variable_integer(name, low, high)
        else:
            values = [v for low, high in pieces for v in range(low, high + 1)]
            self.callbacks.build_variable_integer_values(name, values)

    def _expand(self, token: str) -> list[str]:
        bracket = token.find("[")
        if bracket < 0 or token in self.domains:
            return [token]
        base, suffix = token[:bracket], token[bracket:]
        shape = self.arrays.get(base)
        if shape is None:
            raise ValueError(f"unknown array {base!r}")
        specs = _INDEX_RE.findall(suffix)
        if "".join(f"[{spec}]" for spec in specs) != suffix or len(specs) != len(shape):
            raise ValueError(f"malformed reference {token!r}")
        ranges: list[Iterable[int]] = []
        for spec, size in zip(specs, shape):
            if not spec:
                ranges.append(range(size))
            elif ".." in spec:
                low, high = spec.split("..", 1)
                ranges.append(range(int(low), int(high) + 1))
            else:
                ranges.append((int(spec),))
        return [base + "".join(f"[{i}]" for i in index) for index in product(*ranges)]

    def _names(self, text: str | None) -> list[str]:
        return [name for token in (text or "").split() for name in self._expand(token)]

    def _variable_list(self, text: str | None) -> list[XVariable]:
        return [XVariable(name) for name in self._names(text)]

    def _matrix(self, text: str) -> list[list[XVariable]]:
        if "(" in text:
            return [
                [XVariable(name) for token in row.split(",") for name in self._expand(token.strip())]
                for row in _ROW_RE.findall(text)
            ]
        names = self._names(text)
        return [
            [XVariable(name) for name in row]
            for _, row in groupby(names, key=lambda name: name[: name.rfind("[")])
        ]

    # Constraints

    def _constraints(self, container: ET.Element) -> None:
        for elem in container:
            handler = self.handlers.get(elem.tag)
            if handler is None:
                raise ValueError(f"unsupported constraint <{elem.tag}>")
            handler(elem)

    def _intension(self, elem: ET.Element) -> None:
        function = elem.find("function")
        text = function.text if function is not None else elem.text
        if not text or not text.strip():
            raise ValueError("empty intension constraint")
        tree = parse_expression(text.strip())
        self.callbacks.build_constraint_intension(elem.get("id", ""), tree)

    def _all_different(self, elem: ET.Element) -> None:
        constraint_id = elem.get("id", "")
        lists = elem.findall("list")
        matrix = elem.find("matrix")
        excepted = elem.find("except")
        if matrix is not None:
            self.callbacks.build_constraint_alldifferent_matrix(
                constraint_id, self._matrix(matrix.text or "")
            )
            return
        if len(lists) > 1:
            self.callbacks.build_constraint_alldifferent_list(
                constraint_id, [self._variable_list(item.text) for item in lists]
            )
            return
        text = lists[0].text if lists else elem.text
        text = text or ""
        if "(" in text:
            trees = [parse_expression(token) for token in text.split()]
            self.callbacks.build_constraint_alldifferent_trees(constraint_id, trees)
            return
        variables = self._variable_list(text)
        if excepted is not None:
            self.callbacks.build_constraint_alldifferent_except(
                constraint_id, variables, _integers(excepted.text)
            )
            return
        self.callbacks.build_constraint_alldifferent(constraint_id, variables)

    def _instantiation(self, elem: ET.Element) -> None:
        self.callbacks.build_constraint_instantiation(
            elem.get("id", ""),
            self._variable_list(elem.findtext("list")),
            _integers(elem.findtext("values")),
        )

    def _sum(self, elem: ET.Element) -> None:
        text = elem.findtext("list") or ""
        if "(" in text:
            raise ValueError("sums over expressions are not supported")
        variables = self._variable_list(text)
        condition = _parse_condition(elem.findtext("condition"))
        coeffs_text = elem.findtext("coeffs")
        coeffs: list[int] | list[XVariable] | None = None
        if coeffs_text is not None:
            tokens = coeffs_text.split()
            if all(_INTEGER_RE.fullmatch(t) or _REPEAT_RE.fullmatch(t) for t in tokens):
                coeffs = _integers(coeffs_text)
            else:
                coeffs = self._variable_list(coeffs_text)
        self.callbacks.build_constraint_sum(elem.get("id", ""), variables, condition, coeffs)

    def _group(self, elem: ET.Element) -> None:
        children = [child for child in elem if child.tag != "args"]
        if not children:
            raise ValueError("group without a template constraint")
        template = children[0]
        handler = self.handlers.get(template.tag)
        if handler is None:
            raise ValueError(f"unsupported constraint <{template.tag}>")
        for args in elem.findall("args"):
            constraint = _instantiate(template, (args.text or "").split())
            constraint.set("id", elem.get("id", ""))
            handler(constraint)

    def _block(self, elem: ET.Element) -> None:
        self._constraints(elem)


def parse_instance(file_path: str | Path, callbacks: CHRCallbacks) -> None:
    """Read an XCSP3 instance and report its variables and constraints."""
    root = ET.parse(file_path).getroot()
    _InstanceReader(callbacks).read(root)


def convert(
    file_path: str | Path,
    selected_rules: Iterable[str] | None = None,
    use_builder: bool = False,
    use_file: bool = False,
    minimal_mode: bool = False,
) -> CHRCallbacks:
    """Translate an instance to CHR, writing to stdout or to ``out/<name>.chrpp``."""
    name = instance_name(file_path)
    builder = CHRStructBuilder(name)
    if use_builder:
        builder.enable_builder()
    with contextlib.ExitStack() as stack:
        if use_file:
            out = stack.enter_context(
                open(OUTPUT_DIR / f"{name}.chrpp", "w", encoding="utf-8")
            )
        else:
            out = sys.stdout
        callbacks = CHRCallbacks(builder, out, name, minimal_mode, selected_rules)
        parse_instance(file_path, callbacks)
    print("C++ généré")
    return callbacks