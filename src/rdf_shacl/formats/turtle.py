"""
Turtle reader for shapes and data graphs.

Supports the subset of Turtle used by SHACL documents:
- @prefix / @base and SPARQL-style PREFIX / BASE directives
- IRIs, prefixed names and the 'a' keyword
- Blank node labels (_:x) and property lists ([ ... ])
- Collections (( ... ))
- String literals (short and long quotes) with language tags or datatypes
- Integer, decimal, double and boolean shorthand literals
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin

from rdf_shacl.namespaces import DEFAULT_PREFIXES, RDF, XSD_NS
from rdf_shacl.terms import IRI, BlankNode, Literal, Term

Triple = tuple[Term, Term, Term]
Token = tuple[str, str]

_PUNCTUATION = ";,[]()"
_WORD_DELIMITERS = " \t\n\r;,[]()<\"'#^"

_INTEGER = re.compile(r"^[+-]?\d+$")
_DECIMAL = re.compile(r"^[+-]?\d*\.\d+$")
_DOUBLE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)[eE][+-]?\d+$")
_ESCAPE = re.compile(r"\\(u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|.)", re.DOTALL)

_ESCAPES = {
    "t": "\t",
    "n": "\n",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}


class TurtleSyntaxError(Exception):
    """Malformed Turtle input."""
    pass


def _unescape(raw: str) -> str:
    def replace(match: re.Match) -> str:
        code = match.group(1)
        if code[0] in "uU" and len(code) > 1:
            return chr(int(code[1:], 16))
        return _ESCAPES.get(code, code)

    return _ESCAPE.sub(replace, raw)


def tokenize(text: str) -> list[Token]:
    """Split Turtle text into (kind, value) tokens."""
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        c = text[i]

        # Skip whitespace
        if c in " \t\n\r":
            i += 1
            continue

        # Comment
        if c == "#":
            end = text.find("\n", i)
            i = n if end == -1 else end + 1
            continue

        # IRI
        if c == "<":
            end = text.find(">", i)
            if end == -1:
                raise TurtleSyntaxError(f"Unterminated IRI at offset {i}")
            tokens.append(("IRI", text[i + 1:end]))
            i = end + 1
            continue

        # Literal
        if c in "\"'":
            quote = text[i:i + 3]
            if quote in ('"""', "'''"):
                end = text.find(quote, i + 3)
                if end == -1:
                    raise TurtleSyntaxError(f"Unterminated long string at offset {i}")
                tokens.append(("STRING", _unescape(text[i + 3:end])))
                i = end + 3
                continue
            j = i + 1
            while j < n and text[j] != c:
                if text[j] == "\\":
                    j += 2
                elif text[j] == "\n":
                    raise TurtleSyntaxError(f"Newline in string at offset {j}")
                else:
                    j += 1
            if j >= n:
                raise TurtleSyntaxError(f"Unterminated string at offset {i}")
            tokens.append(("STRING", _unescape(text[i + 1:j])))
            i = j + 1
            continue

        # ^^ for datatype
        if text[i:i + 2] == "^^":
            tokens.append(("DTYPE", "^^"))
            i += 2
            continue

        # Directives and language tags
        if c == "@":
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] == "-"):
                j += 1
            word = text[i + 1:j]
            if word in ("prefix", "base"):
                tokens.append(("DIRECTIVE", word))
            else:
                tokens.append(("LANG", word))
            i = j
            continue

        # Special characters
        if c in _PUNCTUATION or c == ".":
            tokens.append(("PUNCT", c))
            i += 1
            continue

        # Prefixed name, keyword or number
        j = i
        while j < n and text[j] not in _WORD_DELIMITERS:
            j += 1
        if j == i:
            raise TurtleSyntaxError(f"Unexpected character {c!r} at offset {i}")
        word = text[i:j]
        trailing = 0
        while word.endswith(".") and not _DECIMAL.match(word):
            word = word[:-1]
            trailing += 1
        if word:
            tokens.append(("NAME", word))
        tokens.extend([("PUNCT", ".")] * trailing)
        i = j

    return tokens


class TurtleParser:
    """Recursive-descent parser producing term triples."""

    def __init__(self, prefixes: Optional[dict[str, str]] = None, blank_node_prefix: str = ""):
        self.prefixes: dict[str, str] = dict(DEFAULT_PREFIXES)
        if prefixes:
            self.prefixes.update(prefixes)
        self.base = ""
        self._tokens: list[Token] = []
        self._pos = 0
        self._triples: list[Triple] = []
        self._blank_node_counter = 0
        # Prepended to every blank node label of the document
        self.blank_node_prefix = blank_node_prefix

    def parse(self, turtle: str) -> list[Triple]:
        self._tokens = tokenize(turtle)
        self._pos = 0
        self._triples = []

        while not self._at_end():
            self._statement()

        return self._triples

    # ---------------------------------------------------------------- tokens

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _peek(self) -> Token:
        if self._at_end():
            return ("EOF", "")
        return self._tokens[self._pos]

    def _next(self) -> Token:
        token = self._peek()
        if token[0] == "EOF":
            raise TurtleSyntaxError("Unexpected end of input")
        self._pos += 1
        return token

    def _expect(self, kind: str, value: Optional[str] = None) -> Token:
        token = self._next()
        if token[0] != kind or (value is not None and token[1] != value):
            expected = value or kind
            raise TurtleSyntaxError(f"Expected {expected!r}, got {token[1]!r}")
        return token

    def _is_punct(self, value: str) -> bool:
        return self._peek() == ("PUNCT", value)

    # ------------------------------------------------------------ statements

    def _statement(self) -> None:
        kind, value = self._peek()

        if kind == "DIRECTIVE":
            self._next()
            self._directive(value)
            self._expect("PUNCT", ".")
            return

        if kind == "NAME" and value.lower() in ("prefix", "base"):
            self._next()
            self._directive(value.lower())
            return

        subject, is_property_list = self._subject()
        if not (is_property_list and self._is_punct(".")):
            self._predicate_object_list(subject)
        self._expect("PUNCT", ".")

    def _directive(self, name: str) -> None:
        if name == "prefix":
            _, prefix = self._expect("NAME")
            if not prefix.endswith(":"):
                raise TurtleSyntaxError(f"Invalid prefix declaration: {prefix!r}")
            _, iri = self._expect("IRI")
            self.prefixes[prefix[:-1]] = self._resolve(iri)
        else:
            _, iri = self._expect("IRI")
            self.base = self._resolve(iri)

    def _subject(self) -> tuple[Term, bool]:
        kind, value = self._peek()
        if self._is_punct("["):
            return self._blank_node_property_list(), True
        if self._is_punct("("):
            return self._collection(), False
        self._next()
        if kind == "IRI":
            return IRI(self._resolve(value)), False
        if kind == "NAME":
            term = self._name(value)
            if isinstance(term, Literal):
                raise TurtleSyntaxError(f"Literal {value!r} cannot be a subject")
            return term, False
        raise TurtleSyntaxError(f"Unexpected token {value!r} in subject position")

    def _predicate_object_list(self, subject: Term) -> None:
        while True:
            predicate = self._verb()
            self._object_list(subject, predicate)
            if not self._is_punct(";"):
                return
            while self._is_punct(";"):
                self._next()
            if self._is_punct(".") or self._is_punct("]"):
                return

    def _verb(self) -> IRI:
        kind, value = self._next()
        if kind == "NAME" and value == "a":
            return RDF.type
        if kind == "IRI":
            return IRI(self._resolve(value))
        if kind == "NAME":
            term = self._name(value)
            if isinstance(term, IRI):
                return term
        raise TurtleSyntaxError(f"Invalid predicate {value!r}")

    def _object_list(self, subject: Term, predicate: IRI) -> None:
        self._triples.append((subject, predicate, self._object()))
        while self._is_punct(","):
            self._next()
            self._triples.append((subject, predicate, self._object()))

    def _object(self) -> Term:
        if self._is_punct("["):
            return self._blank_node_property_list()
        if self._is_punct("("):
            return self._collection()

        kind, value = self._next()
        if kind == "IRI":
            return IRI(self._resolve(value))
        if kind == "STRING":
            return self._literal(value)
        if kind == "NAME":
            return self._name(value)
        raise TurtleSyntaxError(f"Unexpected token {value!r} in object position")

    def _literal(self, lexical: str) -> Literal:
        kind, value = self._peek()
        if kind == "LANG":
            self._next()
            return Literal(lexical, language=value)
        if kind == "DTYPE":
            self._next()
            dt_kind, dt_value = self._next()
            if dt_kind == "IRI":
                return Literal(lexical, datatype=self._resolve(dt_value))
            if dt_kind == "NAME":
                datatype = self._name(dt_value)
                if isinstance(datatype, IRI):
                    return Literal(lexical, datatype=datatype.value)
            raise TurtleSyntaxError(f"Invalid datatype {dt_value!r}")
        return Literal(lexical)

    def _blank_node_property_list(self) -> BlankNode:
        self._expect("PUNCT", "[")
        node = self._new_blank_node()
        if self._is_punct("]"):
            self._next()
            return node
        self._predicate_object_list(node)
        self._expect("PUNCT", "]")
        return node

    def _collection(self) -> Term:
        self._expect("PUNCT", "(")
        items: list[Term] = []
        while not self._is_punct(")"):
            if self._peek()[0] == "EOF":
                raise TurtleSyntaxError("Unterminated collection")
            items.append(self._object())
        self._next()

        if not items:
            return RDF.nil

        head = self._new_blank_node()
        current = head
        for idx, item in enumerate(items):
            self._triples.append((current, RDF.first, item))
            if idx == len(items) - 1:
                self._triples.append((current, RDF.rest, RDF.nil))
            else:
                rest = self._new_blank_node()
                self._triples.append((current, RDF.rest, rest))
                current = rest
        return head

    # ----------------------------------------------------------------- terms

    def _new_blank_node(self) -> BlankNode:
        self._blank_node_counter += 1
        return BlankNode(f"{self.blank_node_prefix}ttl{self._blank_node_counter}")

    def _resolve(self, iri: str) -> str:
        if self.base and ":" not in iri.split("/", 1)[0]:
            return urljoin(self.base, iri)
        return iri

    def _name(self, word: str) -> Term:
        if word.startswith("_:"):
            return BlankNode(self.blank_node_prefix + word[2:])
        if word in ("true", "false"):
            return Literal(word, datatype=f"{XSD_NS}boolean")
        if _INTEGER.match(word):
            return Literal(word, datatype=f"{XSD_NS}integer")
        if _DECIMAL.match(word):
            return Literal(word, datatype=f"{XSD_NS}decimal")
        if _DOUBLE.match(word):
            return Literal(word, datatype=f"{XSD_NS}double")
        if ":" in word:
            prefix, local = word.split(":", 1)
            if prefix not in self.prefixes:
                raise TurtleSyntaxError(f"Undeclared prefix {prefix!r}")
            return IRI(self.prefixes[prefix] + local.replace("\\", ""))
        raise TurtleSyntaxError(f"Unexpected token {word!r}")


def parse_turtle(
    turtle: str,
    prefixes: Optional[dict[str, str]] = None,
    blank_node_prefix: str = "",
) -> list[Triple]:
    """
    Parse a Turtle document into a list of term triples.

    blank_node_prefix is prepended to every blank node label, both _:x
    labels and generated ones, so documents parsed with distinct
    prefixes never share a blank node.
    """
    return TurtleParser(prefixes, blank_node_prefix=blank_node_prefix).parse(turtle)
