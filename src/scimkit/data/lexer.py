import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from scimkit.error import ScimError, ScimErrorType

OPERATORS = ("and", "or", "not")
COMPARATORS = ("eq", "ne", "co", "sw", "ew", "gt", "lt", "ge", "le", "pr", "np")

_WHITESPACE_REGEX = re.compile(r"\s+")
_NUMBER_REGEX = re.compile(r"[-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?(?![\w+-])")
_BOOLEAN_REGEX = re.compile(r"(false|true)(?![-$\w.:/%])", flags=re.IGNORECASE)
_EMPTY_REGEX = re.compile(r"null(?![-$\w.:/%])", flags=re.IGNORECASE)
_STRING_REGEX = re.compile(r'"((?:[^"\\]|\\.)*)"', flags=re.DOTALL)
_OPERATOR_REGEX = re.compile(
    rf"({'|'.join(OPERATORS)})(?=[^a-zA-Z0-9]|$)", flags=re.IGNORECASE
)
_COMPARATOR_REGEX = re.compile(
    rf"({'|'.join(COMPARATORS)})(?=[^a-zA-Z0-9]|$)", flags=re.IGNORECASE
)
_WORD_REGEX = re.compile(r"[-$\w][-$\w._:/%]*")
_ESCAPE_REGEX = re.compile(r"\\(.)", flags=re.DOTALL)

# splits by full stops that are neither within value filters nor decimal parts of URNs
PATH_SEPARATOR_REGEX = re.compile(r"(?<![^\w]\d)\.(?!\d[^\w]|[^\[]*\])")
MULTI_VALUED_FILTER_REGEX = re.compile(r"^(.+?)(\[.*\])?$", flags=re.DOTALL)


class TokenType(str, Enum):
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    EMPTY = "Empty"
    VALUE = "Value"
    GROUP = "Group"
    OPERATOR = "Operator"
    COMPARATOR = "Comparator"
    WORD = "Word"

    def __str__(self) -> str:
        return self.value


VALUE_TOKEN_TYPES = frozenset(
    {TokenType.NUMBER, TokenType.BOOLEAN, TokenType.EMPTY, TokenType.VALUE}
)


@dataclass(frozen=True)
class Token:
    """
    Single lexical unit of a filter expression. `value` of `Value` tokens is the unquoted
    string, `Empty` tokens carry `None`, and `Group` tokens carry the text between
    the parentheses.
    """

    type: TokenType
    value: Any

    def is_operator(self, name: str) -> bool:
        return self.type == TokenType.OPERATOR and self.value.lower() == name


def _closing(query: str, start: int, opening: str, closing: str) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(query)):
        char = query[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return i
    return None


def _number(literal: str) -> Union[int, float]:
    if "." in literal or "e" in literal.lower():
        return float(literal)
    return int(literal)


def tokenize(query: str) -> list[Token]:
    """
    Splits filter expression into tokens.

    Words following comparators are treated as unquoted string values, words following words
    that end with a full stop are joined with them, and value filters (`[...]`) are joined with
    the preceding attribute name.

    Raises:
        ScimError: If the expression contains anything that can not be tokenized.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(query)
    while pos < length:
        word = None
        if match := _WHITESPACE_REGEX.match(query, pos):
            pos = match.end()
            continue
        if match := _NUMBER_REGEX.match(query, pos):
            tokens.append(Token(TokenType.NUMBER, _number(match.group())))
            end = match.end()
        elif match := _BOOLEAN_REGEX.match(query, pos):
            tokens.append(Token(TokenType.BOOLEAN, match.group(1).lower() == "true"))
            end = match.end()
        elif match := _EMPTY_REGEX.match(query, pos):
            tokens.append(Token(TokenType.EMPTY, None))
            end = match.end()
        elif match := _STRING_REGEX.match(query, pos):
            tokens.append(Token(TokenType.VALUE, _ESCAPE_REGEX.sub(r"\1", match.group(1))))
            end = match.end()
        elif query[pos] == "(":
            if (closing := _closing(query, pos, "(", ")")) is None:
                break
            tokens.append(Token(TokenType.GROUP, query[pos + 1 : closing]))
            end = closing + 1
        elif query[pos] == "[":
            closing = _closing(query, pos, "[", "]")
            if closing is None or not tokens or tokens[-1].type != TokenType.WORD:
                break
            end = closing + 1
            if query[end : end + 1] == ".":
                end += 1
            word = tokens.pop().value + query[pos:end]
        elif match := _OPERATOR_REGEX.match(query, pos):
            tokens.append(Token(TokenType.OPERATOR, match.group(1)))
            end = match.end()
        elif match := _COMPARATOR_REGEX.match(query, pos):
            tokens.append(Token(TokenType.COMPARATOR, match.group(1)))
            end = match.end()
        elif match := _WORD_REGEX.match(query, pos):
            word = match.group()
            end = match.end()
        else:
            break

        if word is not None:
            current = Token(TokenType.WORD, word)
            if tokens:
                previous = tokens[-1]
                if previous.type == TokenType.WORD and previous.value.endswith("."):
                    current = Token(TokenType.WORD, tokens.pop().value + word)
                elif previous.type == TokenType.COMPARATOR:
                    current = Token(TokenType.VALUE, word)
                elif previous.type != TokenType.OPERATOR:
                    break
            tokens.append(current)
        pos = end

    rest = query[pos:]
    if rest:
        reason = f"Unexpected token '{rest}' in filter"
        if rest.startswith("(") and _closing(rest, 0, "(", ")") is None:
            reason = f"Missing closing ')' token in filter '{rest}'"
        if rest.startswith("[") and _closing(rest, 0, "[", "]") is None:
            reason = f"Missing closing ']' token in filter '{rest}'"
        raise ScimError(400, ScimErrorType.INVALID_FILTER, reason)
    return tokens


def split_path(path: str) -> list[str]:
    """
    Splits attribute path into its parts, e.g. `emails[type eq "work"].value` into
    `emails[type eq "work"]` and `value`.
    """
    return [part for part in PATH_SEPARATOR_REGEX.split(path) if part]


def split_value_filter(part: str) -> tuple[str, Optional[str]]:
    """
    Splits path part into attribute name and the inner text of its value filter, if any.
    """
    match = MULTI_VALUED_FILTER_REGEX.match(part)
    if match is None:
        return part, None
    name, value_filter = match.groups()
    if value_filter is None:
        return name, None
    return name, value_filter[1:-1]
