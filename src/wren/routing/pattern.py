"""Route template compilation.

A template such as ``/users/:id/posts/:postId`` is split into literal
and parameter tokens. A parameter token is ``:`` followed by one or more
ASCII letters, digits, or underscores; everything else, separators
included, is literal text. A ``:`` that is not followed by a name
character stays literal.

The compiled matcher walks the tokens directly instead of translating
the template into a regular expression, so characters like ``.``,
``(``, or ``+`` in a template are always matched as themselves.
"""

import string
from dataclasses import dataclass

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")


@dataclass(frozen=True, slots=True)
class PatternToken:
    """A parsed piece of a route template.

    Literal:  ``/users/``  (is_param=False, value is the text)
    Param:    ``:id``      (is_param=True, value is the name)
    """

    value: str
    is_param: bool = False


def parse_template(template: str) -> tuple[PatternToken, ...]:
    """Parse a route template into tokens.

    Examples::

        "/hello"          -> (PatternToken("/hello"),)
        "/users/:id"      -> (PatternToken("/users/"), PatternToken("id", is_param=True))
        "/files/:name.js" -> (PatternToken("/files/"), PatternToken("name", is_param=True),
                              PatternToken(".js"))
    """
    tokens: list[PatternToken] = []
    literal: list[str] = []
    i = 0
    n = len(template)
    while i < n:
        char = template[i]
        if char == ":" and i + 1 < n and template[i + 1] in _NAME_CHARS:
            j = i + 1
            while j < n and template[j] in _NAME_CHARS:
                j += 1
            if literal:
                tokens.append(PatternToken("".join(literal)))
                literal = []
            tokens.append(PatternToken(template[i + 1 : j], is_param=True))
            i = j
            continue
        literal.append(char)
        i += 1
    if literal:
        tokens.append(PatternToken("".join(literal)))
    return tuple(tokens)


def _match_tokens(
    tokens: tuple[PatternToken, ...],
    index: int,
    path: str,
    pos: int,
    failed: set[tuple[int, int]],
) -> tuple[str, ...] | None:
    """Match ``tokens[index:]`` against ``path[pos:]``; return captures or None.

    *failed* records ``(index, pos)`` states already known not to match,
    so adjacent parameters (``/:a:b:c``) cost polynomial, not exponential,
    time on a segment that cannot match.
    """
    if index == len(tokens):
        return () if pos == len(path) else None
    if (index, pos) in failed:
        return None

    token = tokens[index]
    if not token.is_param:
        if not path.startswith(token.value, pos):
            return None
        return _match_tokens(tokens, index + 1, path, pos + len(token.value), failed)

    # A parameter takes at least one character and never crosses a "/".
    # Longest capture first, then shorter ones, like a greedy regex.
    stop = path.find("/", pos)
    if stop == -1:
        stop = len(path)
    for end in range(stop, pos, -1):
        rest = _match_tokens(tokens, index + 1, path, end, failed)
        if rest is not None:
            return (path[pos:end], *rest)
    failed.add((index, pos))
    return None


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """An immutable matcher for one route template.

    ``param_names`` is aligned with the tuple returned by ``match()``:
    the n-th capture belongs to the n-th name.
    """

    template: str
    tokens: tuple[PatternToken, ...]
    param_names: tuple[str, ...]

    @property
    def capture_count(self) -> int:
        """Number of values ``match()`` yields on success."""
        return sum(1 for token in self.tokens if token.is_param)

    @property
    def is_static(self) -> bool:
        return not self.param_names

    def match(self, path: str) -> tuple[str, ...] | None:
        """Match the whole *path*; return the captured values or ``None``.

        Captured values are returned verbatim (no percent-decoding).
        """
        if self.is_static:
            return () if path == self.template else None
        return _match_tokens(self.tokens, 0, path, 0, set())


def compile_template(template: str) -> CompiledPattern:
    """Compile a route template into a ``CompiledPattern``.

    The template is used as-is: a trailing ``/`` is significant and
    duplicate parameter names are accepted.
    """
    if not isinstance(template, str):
        msg = f"Route template must be a string, got {type(template).__name__}"
        raise TypeError(msg)
    tokens = parse_template(template)
    names = tuple(token.value for token in tokens if token.is_param)
    return CompiledPattern(template=template, tokens=tokens, param_names=names)
