"""Resolution of ``${...}`` placeholders in expected-output strings.

Usage::

    fill_template("hello ${name}!", {"name": "world"})  # 'hello world!'

A placeholder holds a Python expression evaluated with the variables bound as
local names, so ``${name.upper()}`` or ``${count + 1}`` work too. Text outside
placeholders is copied verbatim and never evaluated.
"""

from __future__ import annotations

from typing import Iterator, Mapping, Sequence, Union

TemplateTree = Union[str, Sequence["TemplateTree"]]

PLACEHOLDER_OPEN = "${"
QUOTES = "'\""
TEMPLATE_BUILTINS = {
    "abs": abs,
    "bool": bool,
    "float": float,
    "int": int,
    "len": len,
    "max": max,
    "min": min,
    "repr": repr,
    "round": round,
    "sorted": sorted,
    "str": str,
}


def _placeholders(template: str) -> Iterator[tuple[int, int, str]]:
    pos = 0
    while True:
        start = template.find(PLACEHOLDER_OPEN, pos)
        if start < 0:
            return
        depth = 0
        quote: str | None = None
        i = start + len(PLACEHOLDER_OPEN)
        while i < len(template):
            ch = template[i]
            if quote is not None:
                if ch == "\\":
                    i += 1
                elif ch == quote:
                    quote = None
            elif ch in QUOTES:
                quote = ch
            elif ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    break
                depth -= 1
            i += 1
        else:
            raise ValueError(f"Unterminated placeholder at offset {start}: {template!r}")
        yield start, i + 1, template[start + len(PLACEHOLDER_OPEN) : i]
        pos = i + 1


def _stringify(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    return str(value)


def _evaluate(expression: str, variables: Mapping[str, object]) -> object:
    code = compile(expression.strip(), "<template>", "eval")
    return eval(code, {"__builtins__": TEMPLATE_BUILTINS}, dict(variables))


def fill_template(template: str, variables: Mapping[str, object]) -> str:
    """Substitute every placeholder of ``template``.

    Raises ``NameError`` when a placeholder uses a name missing from
    ``variables``.
    """
    parts: list[str] = []
    pos = 0
    for start, end, expression in _placeholders(template):
        parts.append(template[pos:start])
        parts.append(_stringify(_evaluate(expression, variables)))
        pos = end
    parts.append(template[pos:])
    return "".join(parts)


def fill_template_array(
    templates: Sequence[TemplateTree], variables: Mapping[str, object]
) -> list[TemplateTree]:
    return [
        fill_template(item, variables)
        if isinstance(item, str)
        else fill_template_array(item, variables)
        for item in templates
    ]
