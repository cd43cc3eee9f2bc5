"""Tests for ExampleClientAdapter (template/reference adapter)."""

import json

from app.llm.example_client_adapter import ExampleClientAdapter


class TestExampleClientAdapter:
    def test_returns_empty_json_object(self) -> None:
        adapter = ExampleClientAdapter()
        result = adapter.create_chat_completion(
            model="any",
            temperature=0.0,
            max_tokens=10,
            system_prompt="sys",
            user_prompt="user",
        )
        assert json.loads(result) == {}

    def test_ignores_input_parameters(self) -> None:
        adapter = ExampleClientAdapter()
        r1 = adapter.create_chat_completion(
            model="a", temperature=0.0, max_tokens=1, system_prompt="s1", user_prompt="u1"
        )
        r2 = adapter.create_chat_completion(
            model="b", temperature=1.0, max_tokens=999, system_prompt="s2", user_prompt="u2"
        )
        assert r1 == r2
