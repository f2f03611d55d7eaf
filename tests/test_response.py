import json

from dompet.llm.response import (
    deep_parse_arguments,
    normalize_response,
    parse_arguments,
    strip_thinking_tags,
)


def _chat(tool_calls=None, content=None):
    return {"choices": [{"message": {"content": content, "tool_calls": tool_calls}}]}


def _fn(name, arguments):
    return {"type": "function", "function": {"name": name, "arguments": arguments}}


class TestParseArguments:
    def test_dict_passes_through(self):
        assert parse_arguments({"a": 1}) == {"a": 1}

    def test_json_string(self):
        assert parse_arguments('{"period": "today"}') == {"period": "today"}

    def test_thinking_block_is_stripped_first(self):
        raw = '<think>hmm {"wrong": 1}</think>{"period": "this_week"}'
        assert parse_arguments(raw) == {"period": "this_week"}

    def test_recovers_embedded_object(self):
        raw = 'Sure! Here you go: {"person_name": "Andi", "amount": 50000} hope it helps'
        assert parse_arguments(raw) == {"person_name": "Andi", "amount": 50000}

    def test_garbage_becomes_empty(self):
        assert parse_arguments("not json at all") == {}
        assert parse_arguments("{broken") == {}
        assert parse_arguments(None) == {}
        assert parse_arguments("[1, 2]") == {}


def test_strip_thinking_tags_is_non_greedy():
    text = "<think>a</think>keep<think>b</think> this"
    assert strip_thinking_tags(text) == "keep this"


def test_deep_parse_decodes_json_looking_strings():
    args = {"transactions": '[{"amount": 5000}]', "note": "[not json", "name": "x"}
    parsed = deep_parse_arguments(args)
    assert parsed["transactions"] == [{"amount": 5000}]
    assert parsed["note"] == "[not json"
    assert parsed["name"] == "x"


class TestNormalizeResponse:
    def test_chat_shape_with_string_arguments(self):
        raw = _chat([_fn("get_summary", json.dumps({"period": "today"}))])
        result = normalize_response(raw)
        assert [c.name for c in result.action_calls] == ["get_summary"]
        assert result.action_calls[0].arguments == {"period": "today"}
        assert result.text is None

    def test_chat_shape_keeps_order_and_text(self):
        raw = _chat(
            [_fn("record_debt", {"type": "hutang"}), _fn("get_debts", "{}")],
            content="<think>plan</think>Siap bos",
        )
        result = normalize_response(raw)
        assert [c.name for c in result.action_calls] == ["record_debt", "get_debts"]
        assert result.text == "Siap bos"

    def test_legacy_flat_shape(self):
        raw = {
            "tool_calls": [{"name": "pay_debt", "arguments": {"person_name": "Siti", "amount": 1000}}],
            "response": "ok",
        }
        result = normalize_response(raw)
        assert result.action_calls[0].name == "pay_debt"
        assert result.action_calls[0].arguments["amount"] == 1000
        assert result.text == "ok"

    def test_call_without_name_is_skipped(self):
        raw = _chat([{"function": {"arguments": "{}"}}, _fn("get_debts", "{}")])
        assert [c.name for c in normalize_response(raw).action_calls] == ["get_debts"]

    def test_text_only(self):
        result = normalize_response(_chat(content="  Halo bos!  "))
        assert result.action_calls == []
        assert result.text == "Halo bos!"

    def test_think_only_text_is_none(self):
        result = normalize_response({"response": "<think>only thoughts</think>"})
        assert result.text is None
        assert result.action_calls == []

    def test_unrecognised_shapes_are_empty(self):
        for raw in [None, "text", 42, {}, {"choices": []}, {"choices": "nope"}]:
            result = normalize_response(raw)
            assert result.action_calls == [] and result.text is None

    def test_accepts_sdk_objects(self):
        class FakeCompletion:
            def model_dump(self):
                return _chat([_fn("get_daily_target", "")])

        result = normalize_response(FakeCompletion())
        assert result.action_calls[0].name == "get_daily_target"
        assert result.action_calls[0].arguments == {}
