"""Ruleコンパイラのユニットテスト。"""

from schemaguard.engine.compiler import MISSING, compile_rule, compile_rule_tree
from schemaguard.models.result import ErrorKind
from schemaguard.models.schema import Rule


def _kinds(rule: dict) -> list[ErrorKind]:
    return [check.kind for check in compile_rule(Rule.model_validate(rule), "f").checks]


class TestCompileRule:
    def test_required_adds_presence_checks(self) -> None:
        assert _kinds({"required": True}) == [ErrorKind.MANDATORY_FIELD, ErrorKind.EMPTY_FIELD, ErrorKind.EMPTY_FIELD]

    def test_optional_has_no_presence_checks(self) -> None:
        assert _kinds({"required": False, "dataType": "int"}) == [ErrorKind.DATATYPE]

    def test_full_order(self) -> None:
        kinds = _kinds(
            {
                "allowedValues": ["100000", "560001"],
                "length": 6,
                "regex": "^[0-9]+$",
                "dataType": "string",
                "required": True,
            }
        )
        assert kinds == [
            ErrorKind.MANDATORY_FIELD,
            ErrorKind.EMPTY_FIELD,
            ErrorKind.EMPTY_FIELD,
            ErrorKind.DATATYPE,
            ErrorKind.PATTERN,
            ErrorKind.LENGTH,
            ErrorKind.ALLOWED_VALUE,
        ]

    def test_array_element_check(self) -> None:
        assert _kinds({"dataType": "array+string"}) == [ErrorKind.DATATYPE, ErrorKind.ARRAY_DATATYPE]
        assert _kinds({"dataType": "array"}) == [ErrorKind.DATATYPE]

    def test_min_max_only_for_numeric_types(self) -> None:
        assert _kinds({"dataType": "int", "min": 1}) == [ErrorKind.DATATYPE, ErrorKind.MIN_MAX]
        assert _kinds({"dataType": "float", "max": 0}) == [ErrorKind.DATATYPE, ErrorKind.MIN_MAX]
        assert _kinds({"dataType": "string", "min": 1}) == [ErrorKind.DATATYPE]
        assert _kinds({"min": 1}) == []

    def test_length_only_for_string(self) -> None:
        assert _kinds({"dataType": "alpha", "length": 3}) == [ErrorKind.DATATYPE]
        assert _kinds({"length": 3}) == []

    def test_regex_without_data_type(self) -> None:
        assert _kinds({"regex": "^a"}) == [ErrorKind.PATTERN]

    def test_context_payloads(self) -> None:
        field = compile_rule(
            Rule.model_validate({"dataType": "int", "min": 18, "allowedValues": [18, 21]}),
            "age",
        )
        contexts = [check.context for check in field.checks]
        assert contexts == ["int", {"min": 18, "max": None}, (18, 21)]

    def test_presence_check_semantics(self) -> None:
        mandatory, empty, empty_array = compile_rule(Rule.model_validate({"required": True}), "f").checks
        assert not mandatory.test(MISSING)
        assert mandatory.test(None)
        assert not empty.test("")
        assert not empty.test(None)
        assert empty.test(0)
        assert not empty_array.test([])
        assert empty_array.test(["a"])

    def test_coercion_by_type(self) -> None:
        assert compile_rule(Rule.model_validate({"dataType": "int"}), "f").coerce("7") == 7
        assert compile_rule(Rule.model_validate({"dataType": "bool"}), "f").coerce("false") is False
        assert compile_rule(Rule.model_validate({"dataType": "string"}), "f").coerce is None


class TestCompileRuleTree:
    def test_nested_paths_in_tree_order(self) -> None:
        tree = {
            "name": {"required": True},
            "address": {
                "city": {"required": True},
                "geo": {"lat": {"dataType": "float"}, "lng": {"dataType": "float"}},
            },
            "age": {"dataType": "int"},
        }
        assert [field.path for field in compile_rule_tree(tree)] == [
            "name",
            "address.city",
            "address.geo.lat",
            "address.geo.lng",
            "age",
        ]

    def test_prefix(self) -> None:
        fields = compile_rule_tree({"city": {"required": True}}, prefix="address")
        assert fields[0].path == "address.city"
        assert fields[0].required is True

    def test_compiling_twice_is_deterministic(self) -> None:
        tree = {"age": {"required": True, "dataType": "int", "min": 18}}
        first = compile_rule_tree(tree)
        second = compile_rule_tree(tree)
        for value in ("15", "18", "abc", ""):
            assert [c.test(value) for c in first[0].checks] == [c.test(value) for c in second[0].checks]
