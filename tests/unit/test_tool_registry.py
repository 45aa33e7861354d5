# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for ToolRegistry, the built-in catalog and argument validation."""

import pytest

from atelier.core.errors import ConfigurationError
from atelier.tools.base import (
    BuiltinTool,
    ContinuationCondition,
    ContinuationRule,
    ToolDefinition,
    validate_arguments,
)
from atelier.tools.builtin import BUILTIN_HANDLERS
from atelier.tools.registry import ToolRegistry, default_registry


class TestToolRegistry:
    """Tests for ToolRegistry construction and lookup."""

    def test_lookup_is_idempotent(self):
        registry = default_registry()
        first = registry.get("generate_component")

        assert first is not None
        assert registry.get("generate_component") is first
        assert default_registry() is registry

    def test_unknown_name_returns_none(self):
        assert default_registry().get("make_coffee") is None
        assert "make_coffee" not in default_registry()

    def test_duplicate_names_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            ToolRegistry([ToolDefinition("a", "first"), ToolDefinition("a", "second")])

    def test_dangling_continuation_rejected(self):
        with pytest.raises(ConfigurationError, match="unknown tool 'missing'"):
            ToolRegistry([ToolDefinition("a", "a", continuation=ContinuationRule("missing"))])

    def test_registration_order_preserved(self):
        registry = ToolRegistry([ToolDefinition("b", "b"), ToolDefinition("a", "a")])
        assert registry.names() == ["b", "a"]
        assert [d.name for d in registry] == ["b", "a"]
        assert len(registry) == 2

    def test_chain_length_must_be_positive(self):
        with pytest.raises(ValueError):
            ContinuationRule("a", max_chain_length=0)


class TestBuiltinCatalog:
    """Tests for the built-in tool catalog."""

    def test_every_builtin_has_definition_and_handler(self):
        registry = default_registry()
        for tool in BuiltinTool:
            assert tool.value in registry
            assert tool.value in BUILTIN_HANDLERS
        assert len(registry) == len(BuiltinTool) == len(BUILTIN_HANDLERS)

    @pytest.mark.parametrize(
        "tool, next_tool, condition, max_chain",
        [
            ("generate_component", "reflect_on_artifact", ContinuationCondition.ALWAYS, 2),
            ("edit_component", "reflect_on_artifact", ContinuationCondition.ALWAYS, 1),
            ("generate_image_asset", "reflect_on_artifact", ContinuationCondition.ALWAYS, 2),
            ("upload_image_to_cdn", "generate_component", ContinuationCondition.IF_COMPONENT_REQUESTED, 1),
            ("reflect_on_artifact", "upload_image_to_cdn", ContinuationCondition.IF_COMPONENT_REQUESTED, 1),
            ("capture_preview_screenshot", "reflect_on_artifact", ContinuationCondition.ALWAYS, 1),
            ("create_project_plan", "reflect_on_artifact", ContinuationCondition.IF_USER_INTENT_COMPLETE, 1),
        ],
    )
    def test_continuation_rules(self, tool, next_tool, condition, max_chain):
        rule = default_registry().get(tool).continuation
        assert rule == ContinuationRule(next_tool, condition, max_chain)

    @pytest.mark.parametrize("tool", ["analyze_project_state", "switch_ui_tab", "create_scene", "update_plan_task"])
    def test_tools_without_continuation(self, tool):
        assert default_registry().get(tool).continuation is None

    def test_json_schema_is_plain_copy(self):
        definition = default_registry().get("generate_image_asset")
        schema = definition.json_schema()
        schema["properties"]["size"]["enum"].append("huge")

        assert "huge" not in definition.properties["size"]["enum"]
        assert schema["required"] == ["name", "prompt"]


class TestValidateArguments:
    """Tests for validate_arguments."""

    @pytest.fixture
    def scene_definition(self):
        return default_registry().get("create_scene")

    def test_valid_arguments(self, scene_definition):
        result = validate_arguments(
            scene_definition,
            {"name": "Home", "description": "Landing", "components": [{"component_id": "c1", "x": 0, "y": 10.5}]},
        )
        assert result.valid
        assert result.errors == []

    def test_null_counts_as_missing(self, scene_definition):
        result = validate_arguments(scene_definition, {"name": "Home", "description": None})
        assert not result.valid
        assert result.errors == ["'description' is a required property"]

    def test_wrong_primitive_type(self, scene_definition):
        result = validate_arguments(scene_definition, {"name": 3, "description": "d"})
        assert result.errors == ["name: 3 is not of type 'string'"]

    def test_boolean_is_not_a_number(self, scene_definition):
        result = validate_arguments(scene_definition, {"name": "n", "description": "d", "width": True})
        assert result.errors == ["width: True is not of type 'number'"]

    def test_enum_violation(self, scene_definition):
        result = validate_arguments(scene_definition, {"name": "n", "description": "d", "layout_type": "masonry"})
        assert result.errors == ["layout_type: 'masonry' is not one of ['freeform', 'grid', 'flex']"]

    def test_array_items_validated(self, scene_definition):
        result = validate_arguments(
            scene_definition,
            {"name": "n", "description": "d", "components": [{"component_id": "c1", "x": "left"}]},
        )
        assert result.errors == [
            "components[0]: 'y' is a required property",
            "components[0].x: 'left' is not of type 'number'",
        ]

    def test_extra_arguments_allowed(self, scene_definition):
        assert validate_arguments(scene_definition, {"name": "n", "description": "d", "mood": "calm"}).valid

    def test_non_mapping_rejected(self, scene_definition):
        result = validate_arguments(scene_definition, ["not", "a", "dict"])
        assert not result.valid
        assert result.errors == ["arguments must be an object, got list"]

    def test_full_keyword_set_enforced(self):
        definition = ToolDefinition(
            "tag_items",
            "Tag a batch of items",
            parameters={
                "type": "object",
                "properties": {
                    "count": {"type": "integer", "minimum": 1},
                    "tag": {"type": "string", "maxLength": 3},
                },
                "required": ["count"],
                "additionalProperties": False,
            },
        )

        result = validate_arguments(definition, {"count": 0, "tag": "toolong", "extra": 1})

        assert not result.valid
        assert len(result.errors) == 3
        assert result.errors[0].startswith("Additional properties are not allowed")
        assert result.errors[1].startswith("count: 0 is less than the minimum of 1")
        assert result.errors[2].startswith("tag: 'toolong'")

    def test_errors_are_sorted_by_path(self, scene_definition):
        result = validate_arguments(scene_definition, {"name": 1, "description": 2, "width": "wide"})
        assert [error.split(":")[0] for error in result.errors] == ["description", "name", "width"]
