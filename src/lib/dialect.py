"""
Dialect rules for markdown-it

Adds the constructs of the Markdown dialect that markdown-it and its
plugins do not cover to a MarkdownIt parser:

- Inline math: $...$, $$...$$ and GitLab's $`...`$
- Display math: a $$ line, the formula, and a closing line ending in $$
- Definition lists with several terms sharing one block of definitions

A lone dollar sign followed by an amount is ordinary prose. The single-$
rule only accepts a span when:
1. The opener is followed by a non-whitespace character
2. The closer is the first unescaped $ after the opener (same paragraph,
   possibly on a later line)
3. The closer is not preceded by a space or tab
4. The closer is not followed by a digit

So "The book is $3, not $5." stays prose (the candidate closer "$5" is
preceded by a space), while "$E = mc^2\\n$" and "$1 \\$2 3$" are math.

Example:
    >>> md = MarkdownIt("commonmark")
    >>> math_plugin(md)
    >>> [t.type for t in md.parse("Price $5, formula $x$.")[1].children]
    ['text', 'math_inline', 'text']
"""

from typing import List, Optional, Tuple

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token


def delimiter_isEscaped(src: str, pos: int) -> bool:
    """Check if the character at pos is preceded by an odd number of backslashes"""
    backslashes = 0
    pos -= 1
    while pos >= 0 and src[pos] == '\\':
        backslashes += 1
        pos -= 1
    return backslashes % 2 == 1


def delimiter_findUnescaped(src: str, delimiter: str, start: int, maximum: int) -> int:
    """
    Find the first unescaped occurrence of delimiter in src[start:maximum]

    Returns:
        Offset of the delimiter, or -1
    """
    pos = start
    while True:
        found = src.find(delimiter, pos, maximum)
        if found == -1:
            return -1
        if not delimiter_isEscaped(src, found):
            return found
        pos = found + 1


def mathInline_scan(src: str, pos: int, maximum: int) -> Optional[Tuple[str, str, int]]:
    """
    Scan for an inline math span opening at pos

    Args:
        src: Inline source
        pos: Offset of a '$'
        maximum: End of the scannable region

    Returns:
        (opener, closer, closer offset), or None if pos does not open math

    Example:
        >>> mathInline_scan("a $x$ b", 2, 7)
        ('$', '$', 4)
        >>> mathInline_scan("is $3, not $5.", 3, 14) is None
        True
    """
    if pos >= maximum or src[pos] != '$':
        return None

    # GitLab: $`...`$
    if src.startswith('$`', pos):
        end = src.find('`$', pos + 2, maximum)
        if end <= pos + 2:
            return None
        return '$`', '`$', end

    # $$...$$ within a line of prose
    if src.startswith('$$', pos):
        end = delimiter_findUnescaped(src, '$$', pos + 2, maximum)
        if end <= pos + 2:
            return None
        return '$$', '$$', end

    nxt = pos + 1
    if nxt >= maximum or src[nxt].isspace():
        return None

    end = delimiter_findUnescaped(src, '$', nxt, maximum)
    if end == -1:
        return None
    if src[end - 1] in ' \t':
        return None
    if end + 1 < maximum and src[end + 1].isdigit():
        return None

    return '$', '$', end


def mathInline_rule(state: StateInline, silent: bool) -> bool:
    """markdown-it inline rule producing math_inline tokens"""
    pos = state.pos
    if state.src[pos] != '$':
        return False

    match = mathInline_scan(state.src, pos, state.posMax)
    if match is None:
        return False

    opener, closer, end = match
    if not silent:
        token = state.push("math_inline", "math", 0)
        token.markup = opener
        token.content = state.src[pos + len(opener):end]
        token.meta = {"closer": closer}

    state.pos = end + len(closer)
    return True


def mathBlock_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """
    markdown-it block rule producing math_block tokens

    Recognizes:
        $$                $$ a^2 + b^2 $$
        a^2 + b^2
        $$
    """
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    start = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]
    if not state.src.startswith('$$', start, maximum):
        return False

    rest = state.src[start + 2:maximum].rstrip()
    nextLine = startLine

    if rest:
        # Single-line form: the opening line must also close
        if not rest.endswith('$$'):
            return False
        content = rest[:-2]
    else:
        closed = False
        while True:
            nextLine += 1
            if nextLine >= endLine:
                break
            lineStart = state.bMarks[nextLine] + state.tShift[nextLine]
            lineMax = state.eMarks[nextLine]
            if lineStart < lineMax and state.sCount[nextLine] < state.blkIndent:
                break
            if state.src[lineStart:lineMax].rstrip().endswith('$$'):
                closed = True
                break
        if not closed:
            return False
        closingStart = state.bMarks[nextLine] + state.tShift[nextLine]
        closingText = state.src[closingStart:state.eMarks[nextLine]].rstrip()
        content = state.getLines(startLine + 1, nextLine, state.sCount[startLine], True)
        content += closingText[:-2]

    if silent:
        return True

    state.line = nextLine + 1

    token = state.push("math_block", "math", 0)
    token.block = True
    token.markup = '$$'
    token.content = content
    token.map = [startLine, state.line]
    return True


def math_plugin(md: MarkdownIt) -> None:
    """
    Register the math dialect rules on a MarkdownIt instance

    Inline math is tried before backslash escapes so that the escape rule
    never sees a delimiter; display math may interrupt a paragraph.
    """
    md.inline.ruler.before("escape", "math_inline", mathInline_rule)
    md.block.ruler.before(
        "fence",
        "math_block",
        mathBlock_rule,
        {"alt": ["paragraph", "reference", "blockquote", "list"]},
    )


def definitionMarker_skip(state: StateBlock, line: int) -> int:
    """
    Offset after a ':' or '~' definition marker, or -1

    Mirrors the marker test of mdit_py_plugins.deflist: the marker must be
    followed by a space and a non-empty definition.
    """
    start = state.bMarks[line] + state.tShift[line]
    maximum = state.eMarks[line]
    if start >= maximum or state.src[start] not in ':~':
        return -1
    pos = state.skipSpaces(start + 1)
    if pos == start + 1 or pos >= maximum:
        return -1
    return start + 1


def definitionTerms_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """
    markdown-it block rule for terms sharing one block of definitions

    The deflist plugin only takes the single line before the ':' marker
    as a term. Given

        Term A
        Term B
        : Shared definition

    this rule emits detached dt tokens for every term line but the last
    and leaves the last one to the deflist rule; definitionTerms_merge()
    then moves the detached terms into the list.
    """
    if silent:
        return False
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    last = startLine
    while True:
        nextLine = last + 1
        if nextLine >= endLine or state.isEmpty(nextLine):
            break
        if state.sCount[nextLine] - state.blkIndent >= 4:
            return False
        if definitionMarker_skip(state, nextLine) >= 0:
            break
        last = nextLine
    if last == startLine:
        return False

    markerLine = last + 1
    if markerLine < endLine and state.isEmpty(markerLine):
        markerLine += 1
    if markerLine >= endLine or state.sCount[markerLine] < state.blkIndent:
        return False
    if definitionMarker_skip(state, markerLine) < 0:
        return False

    for line in range(startLine, last):
        token = state.push("dt_open", "dt", 1)
        token.map = [line, line]
        token.meta = {"detached_term": True}

        token = state.push("inline", "", 0)
        token.map = [line, line]
        token.content = state.getLines(line, line + 1, state.blkIndent, False).strip()
        token.children = []
        token.meta = {"detached_term": True}

        token = state.push("dt_close", "dt", -1)
        token.meta = {"detached_term": True}

    state.line = last
    return True


def definitionTerms_merge(state: StateCore) -> None:
    """markdown-it core rule moving detached terms into the following dl"""
    merged: List[Token] = []
    detached: List[Token] = []
    for token in state.tokens:
        if token.meta.get("detached_term"):
            detached.append(token)
            continue
        if detached and token.type == "dl_open":
            merged.append(token)
            if token.map and detached[0].map:
                token.map = [detached[0].map[0], token.map[1]]
            for term in detached:
                term.level += 1
            merged.extend(detached)
            detached = []
            continue
        merged.extend(detached)
        detached = []
        merged.append(token)
    merged.extend(detached)
    state.tokens = merged


def definitionTerms_plugin(md: MarkdownIt) -> None:
    """
    Register multi-term definition lists; requires the deflist plugin

    Terms are merged before the inline pass so each gets inline children.
    """
    md.block.ruler.before("deflist", "definition_terms", definitionTerms_rule)
    md.core.ruler.after("block", "definition_terms", definitionTerms_merge)
