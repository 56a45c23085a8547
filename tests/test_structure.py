"""
Tests for the structure view: bracket pairing and statement segments.
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stylescanner.parsers.structure import SourceStructure, SegmentKind
from stylescanner.parsers.tokenizer import tokenize


def build(source, terminator=";"):
    return SourceStructure.build(tokenize(source), terminator=terminator)


def segment_texts(structure):
    return [
        " ".join(structure.tokens[i].text for i in segment.indices)
        for segment in structure.segments
    ]


def index_of(structure, text, occurrence=0):
    matches = [i for i, t in enumerate(structure.tokens) if t.text == text]
    return matches[occurrence]


class TestBracketPairing:
    """Tests for the stack-based bracket scan."""

    def test_nested_pairs(self):
        structure = build("f(a[0]) { }")
        lparen = index_of(structure, "(")
        rparen = index_of(structure, ")")
        lbracket = index_of(structure, "[")
        rbracket = index_of(structure, "]")
        assert structure.partner(lparen) == rparen
        assert structure.partner(rparen) == lparen
        assert structure.partner(lbracket) == rbracket
        assert structure.partner(index_of(structure, "{")) == index_of(structure, "}")

    def test_unbalanced_closer_is_ignored(self):
        structure = build("a) + b")
        assert structure.partner(index_of(structure, ")")) is None

    def test_unclosed_opener_stays_unpaired(self):
        structure = build("foo(a, b")
        assert structure.partner(index_of(structure, "(")) is None

    def test_is_wrapped(self):
        structure = build("(a) && (b)")
        significant = [i for i, t in enumerate(structure.tokens) if not t.is_trivia]
        assert not structure.is_wrapped(significant)
        assert structure.is_wrapped(significant[:3])

    def test_significant_neighbours(self):
        structure = build("a  /* c */ b")
        a = index_of(structure, "a")
        b = index_of(structure, "b")
        assert structure.next_significant(a) == b
        assert structure.prev_significant(b) == a
        assert structure.next_significant(b) is None


class TestSegments:
    """Tests for statement segmentation and classification."""

    def test_newline_and_terminator_end_segments(self):
        structure = build("let a: Int = 1\nlet b: Int = 2;")
        assert segment_texts(structure) == ["let a : Int = 1", "let b : Int = 2"]
        first, second = structure.segments
        assert not first.terminated
        assert second.terminated
        assert first.kind == SegmentKind.DECLARATION
        assert first.keyword == "let"

    def test_newline_inside_brackets_does_not_end_segment(self):
        structure = build("foo(a,\n    b)\nbar()")
        assert segment_texts(structure) == ["foo ( a , b )", "bar ( )"]

    def test_trailing_continuation_operator(self):
        structure = build("let total: Int = a +\n    b\nnext()")
        assert segment_texts(structure) == ["let total : Int = a + b", "next ( )"]

    def test_leading_continuation(self):
        structure = build("items\n    .filter(f)\n    .count\nother")
        assert segment_texts(structure) == ["items . filter ( f ) . count", "other"]

    def test_control_header_continues_to_brace(self):
        structure = build("if (x)\n{\n    return;\n}")
        header = structure.segments[0]
        assert header.kind == SegmentKind.CONTROL_HEADER
        assert header.keyword == "if"
        assert header.opens_block
        brace = index_of(structure, "{")
        assert structure.segment_for_block(brace) is header

    def test_closure_resumes_statement(self):
        structure = build("items.map { x in\n    x * 2\n}\nnext()")
        texts = segment_texts(structure)
        assert "items . map { }" in texts
        assert "x in" in texts
        assert "x * 2" in texts
        assert texts[-1] == "next ( )"
        assert index_of(structure, "{") in structure.closures

    def test_closure_inside_call_arguments(self):
        structure = build("items.forEach({ item in\n    print(item)\n})")
        texts = segment_texts(structure)
        assert texts[0] == "items . forEach ( { } )"
        assert "print ( item )" in texts

    def test_initialized_var_brace_is_closure(self):
        structure = build("let f: () -> Int = { 1 }")
        assert index_of(structure, "{") in structure.closures
        assert not structure.block_headers

    def test_computed_property_opens_block(self):
        structure = build("var size: Int {\n    get { return 1; }\n}")
        assert index_of(structure, "{") in structure.block_headers
        getter = structure.block_headers[index_of(structure, "{", 1)]
        assert structure.tokens[getter.first].text == "get"

    def test_case_labels(self):
        source = "switch v {\ncase 1:\n    foo();\ndefault:\n    bar();\n}"
        structure = build(source)
        labels = [s for s in structure.segments if s.label]
        assert len(labels) == 2
        assert segment_texts(structure) == [
            "switch v",
            "case 1 :",
            "foo ( )",
            "default :",
            "bar ( )",
        ]

    def test_classic_for_keeps_terminators(self):
        structure = build("for i = 0; i < n; i++ {\n}")
        assert len(structure.segments) == 1
        header = structure.segments[0]
        assert header.keyword == "for"
        assert header.opens_block

    def test_custom_terminator(self):
        structure = build("a = 1. b = 2.", terminator=".")
        assert [s.terminated for s in structure.segments] == [True, True]

    def test_modifiers_and_attributes_are_skipped(self):
        structure = build("@objc private(set) static var count: Int = 0")
        segment = structure.segments[0]
        assert segment.kind == SegmentKind.DECLARATION
        assert segment.keyword == "var"
        assert structure.has_modifier(segment, "static")
        assert not structure.has_modifier(segment, "final")

    def test_class_func_is_a_function(self):
        structure = build("class func make() {\n}")
        segment = structure.segments[0]
        assert segment.keyword == "func"
        assert structure.has_modifier(segment, "class")

    def test_containers_and_depth(self):
        source = "struct S {\n    var a: Int;\n    func f() {\n        go();\n    }\n}"
        structure = build(source)
        outer = index_of(structure, "{")
        members = structure.members(outer)
        assert [m.keyword for m in members] == ["var", "func"]
        call = [s for s in structure.segments if structure.tokens[s.first].text == "go"][0]
        assert call.depth == 2
        assert structure.members(None)[0].keyword == "struct"


class TestBindingNames:
    """Tests for the names bound by var/let declarations."""

    def names(self, source):
        structure = build(source)
        return [structure.tokens[i].text for i in structure.binding_names(structure.segments[0])]

    def test_single_binding(self):
        assert self.names("let count = 0") == ["count"]

    def test_multiple_bindings(self):
        assert self.names("var a = 1, b: Int = 2") == ["a", "b"]

    def test_generic_type_commas(self):
        assert self.names("var d: Dictionary<String, Int> = [:], e = 1") == ["d", "e"]

    def test_tuple_pattern_and_wildcard(self):
        assert self.names("let (x, y) = point") == []
        assert self.names("let _ = value") == []

    def test_not_a_binding(self):
        assert self.names("func f() {}") == []
