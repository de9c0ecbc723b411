from conftest import chat_body

from opsin.parser import extract_message_text, parse_color_analysis, summarize_body


def test_escaped_newline_and_quotes_are_unescaped():
    body = '{"choices":[{"message":{"content":"Line1\\nLine2 \\"quoted\\""}}]}'
    assert extract_message_text(body) == 'Line1\nLine2 "quoted"'


def test_escaped_quote_does_not_end_the_scan_early():
    body = '{"choices":[{"message":{"content":"a \\"b\\" c","role":"assistant"}}]}'
    assert extract_message_text(body) == 'a "b" c'


def test_escaped_backslash_before_closing_quote():
    body = '{"choices":[{"message":{"content":"path C:\\\\"}}]}'
    assert extract_message_text(body) == "path C:\\"


def test_tabs_and_carriage_returns():
    body = '{"choices":[{"message":{"content":"a\\tb\\r\\nc"}}]}'
    assert extract_message_text(body) == "a\tb\r\nc"


def test_realistic_azure_body():
    text = "Increase Temperature by +5.\nReduce Orange saturation by -10."
    assert extract_message_text(chat_body(text)) == text


def test_content_filter_results_before_choices_are_skipped():
    body = (
        '{"prompt_filter_results":[{"prompt_index":0,"content_filter_results":{}}],'
        '"choices":[{"message":{"content":"ok"}}]}'
    )
    assert extract_message_text(body) == "ok"


def test_missing_content_returns_none():
    assert extract_message_text('{"error":{"code":"429","message":"Too many requests"}}') is None
    assert extract_message_text('{"choices":[{"message":{"content":null}}]}') is None
    assert extract_message_text("") is None
    assert extract_message_text(None) is None


def test_unterminated_content_returns_none():
    assert extract_message_text('{"choices":[{"message":{"content":"never ends') is None


def test_structured_analysis_reply():
    reply = (
        '```json\n{"description":"Cool cast","issues":["blue shadows"],'
        '"suggestions":"Warm it up","adjustments":{"temperature":8,"tint":-2,"vibrance":"n/a"}}\n```'
    )
    analysis = parse_color_analysis(reply)
    assert analysis is not None
    assert analysis.description == "Cool cast"
    assert analysis.issues == ["blue shadows"]
    assert analysis.adjustments == {"temperature": 8.0, "tint": -2.0}


def test_structured_reply_with_broken_json_falls_back_to_patterns():
    reply = '{"description":"Greenish skin", "adjustments": {"green_hue": -5, "tint": 3}, "suggestions": "Pull green'
    analysis = parse_color_analysis(reply)
    assert analysis is not None
    assert analysis.description == "Greenish skin"
    assert analysis.suggestions is None
    assert analysis.adjustments == {"green_hue": -5.0, "tint": 3.0}


def test_prose_reply_is_not_structured():
    assert parse_color_analysis("## Color balance\n- Warm the image slightly") is None


def test_summarize_body_truncates():
    assert summarize_body("x" * 10, limit=4) == "xxxx...<truncated>"
    assert summarize_body(None) == ""
