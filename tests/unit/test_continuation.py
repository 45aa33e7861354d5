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

"""Tests for the continuation strategy."""

import pytest

from atelier.agent.continuation import ContinuationStrategy, condition_met
from atelier.tools.base import ContinuationCondition, ToolCallRecord, ToolResult
from atelier.tools.registry import ToolRegistry, default_registry

from tests.factories import definition, image_reflect_registry


def record(function, data=None, success=True, call_id="call-1"):
    result = ToolResult.ok("ok", data) if success else ToolResult.fail("boom")
    return ToolCallRecord(id=call_id, function=function, args={}, result=result)


class TestConditionMet:
    """Tests for continuation condition evaluation."""

    @pytest.mark.parametrize(
        "condition,request_text,expected",
        [
            (ContinuationCondition.ALWAYS, "", True),
            (ContinuationCondition.IF_COMPONENT_REQUESTED, "Make a HERO section", True),
            (ContinuationCondition.IF_COMPONENT_REQUESTED, "build a landing page", True),
            (ContinuationCondition.IF_COMPONENT_REQUESTED, "draw a cat", False),
            (ContinuationCondition.IF_USER_INTENT_COMPLETE, "run the full workflow", True),
            (ContinuationCondition.IF_USER_INTENT_COMPLETE, "plan my app", False),
        ],
    )
    def test_conditions(self, condition, request_text, expected):
        """Conditions match case-insensitively against the request."""
        assert condition_met(condition, request_text) is expected


class TestDecide:
    """Tests for ContinuationStrategy.decide."""

    def test_no_calls(self, project):
        """An empty step never continues."""
        strategy = ContinuationStrategy(image_reflect_registry())

        assert strategy.decide([], "anything", {}, project) is None

    def test_last_call_continues_with_empty_args(self, project):
        """A pair without a mapper continues with empty arguments."""
        strategy = ContinuationStrategy(image_reflect_registry())

        decision = strategy.decide([record("generate_image")], "draw", {}, project)

        assert decision.triggered_by == "generate_image"
        assert decision.next_tool == "reflect"
        assert decision.args == {}
        assert decision.reason == "always"

    def test_only_last_call_is_considered(self, project):
        """Earlier calls in the step do not trigger a continuation."""
        strategy = ContinuationStrategy(image_reflect_registry())
        calls = [record("generate_image", call_id="a"), record("reflect", call_id="b")]

        assert strategy.decide(calls, "draw", {}, project) is None

    def test_failed_call_never_continues(self, project):
        """A failed last call stops the chain."""
        strategy = ContinuationStrategy(image_reflect_registry())

        assert strategy.decide([record("generate_image", success=False)], "draw", {}, project) is None

    def test_unmet_condition(self, project):
        """A conditional rule does not fire when the request lacks trigger words."""
        registry = ToolRegistry(
            [
                definition("a", "b", condition=ContinuationCondition.IF_COMPONENT_REQUESTED),
                definition("b"),
            ]
        )
        strategy = ContinuationStrategy(registry)

        assert strategy.decide([record("a")], "draw a cat", {}, project) is None
        assert strategy.decide([record("a")], "draw a button", {}, project) is not None

    def test_chain_limit(self, project):
        """The per-tool counter bounds repeated continuations."""
        strategy = ContinuationStrategy(image_reflect_registry(max_chain_length=2))

        assert strategy.decide([record("generate_image")], "draw", {"generate_image": 1}, project)
        assert strategy.decide([record("generate_image")], "draw", {"generate_image": 2}, project) is None

    def test_mapper_returning_none_stops(self, project):
        """A mapper that cannot produce arguments stops the chain."""
        strategy = ContinuationStrategy(
            image_reflect_registry(), mappings={("generate_image", "reflect"): lambda r, q, p: None}
        )

        assert strategy.decide([record("generate_image")], "draw", {}, project) is None


class TestDefaultMappings:
    """Tests for the built-in tool-pair argument mappings."""

    @pytest.fixture
    def strategy(self):
        return ContinuationStrategy(default_registry())

    def test_image_to_reflection(self, strategy, project):
        """A generated image is reflected on by asset id."""
        decision = strategy.decide(
            [record("generate_image_asset", {"asset_id": "img-1"})], "a sunset", {}, project
        )

        assert decision.next_tool == "reflect_on_artifact"
        assert decision.args == {"artifact_type": "image", "artifact_id": "img-1"}

    def test_component_to_reflection(self, strategy, project):
        """A generated component is reflected on by component id."""
        decision = strategy.decide(
            [record("generate_component", {"component_id": "comp-1"})], "a card", {}, project
        )

        assert decision.args == {"artifact_type": "component", "artifact_id": "comp-1"}

    def test_reflection_to_upload_requires_image(self, strategy, project):
        """Only image reflections lead to an upload."""
        image = record("reflect_on_artifact", {"artifact_type": "image", "artifact_id": "img-1"})
        component = record("reflect_on_artifact", {"artifact_type": "component", "artifact_id": "comp-1"})

        decision = strategy.decide([image], "a hero banner", {}, project)
        assert decision.next_tool == "upload_image_to_cdn"
        assert decision.args == {"asset_id": "img-1"}
        assert strategy.decide([component], "a hero banner", {}, project) is None

    def test_reflection_without_component_intent(self, strategy, project):
        """Image reflections stop when no component was requested."""
        image = record("reflect_on_artifact", {"artifact_type": "image", "artifact_id": "img-1"})

        assert strategy.decide([image], "paint a sunset", {}, project) is None

    def test_upload_to_component(self, strategy, project):
        """An upload feeds the hosted URL into component generation."""
        upload = record(
            "upload_image_to_cdn",
            {"asset_id": "img-1", "name": "sunset sky", "cdn_url": "https://cdn/x.png", "description": "warm tones"},
        )

        decision = strategy.decide([upload], "  Build a hero banner ", {}, project)

        assert decision.next_tool == "generate_component"
        assert decision.args == {
            "name": "SunsetSkyComponent",
            "description": "Build a hero banner\n\nUse the hosted image at https://cdn/x.png (warm tones)",
            "image_url": "https://cdn/x.png",
        }

    def test_plan_reflection_needs_complete_intent(self, strategy, project):
        """Plans are reflected on only for end-to-end requests."""
        plan = record("create_project_plan", {"plan_id": "plan-1"})

        assert strategy.decide([plan], "plan my app", {}, project) is None
        decision = strategy.decide([plan], "plan the entire app", {}, project)
        assert decision.args == {"artifact_type": "plan", "artifact_id": "plan-1"}
