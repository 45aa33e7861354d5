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

"""Heuristic artifact reflection.

Scores an artifact from 0 to 10 without a model call. The rubric looks at
how much of the user's request the artifact reflects and at basic quality
signals for each artifact type. Good enough to drive the critique step of
a workflow; swap in a model-backed Reflector for deeper reviews.
"""

import logging
import re
from typing import Any, List, Optional, Set, Tuple

from atelier.project.schema import ComponentSchema, ImageAsset, Project, ProjectPlan, Screenshot
from atelier.tools.collaborators import ReflectionOutcome

logger = logging.getLogger(__name__)

STOP_WORDS = {
    "a", "an", "and", "the", "for", "with", "that", "this", "please", "create",
    "make", "build", "generate", "me", "my", "to", "of", "in", "on", "it", "i",
}

BASE_SCORE = 5.0


def keywords(text: str) -> Set[str]:
    return {w for w in re.findall(r"[a-z0-9]+", text.lower()) if len(w) > 2 and w not in STOP_WORDS}


def _overlap(request: str, text: str) -> float:
    wanted = keywords(request)
    if not wanted:
        return 1.0
    return len(wanted & keywords(text)) / len(wanted)


class HeuristicReflector:
    """Reflector scoring artifacts with simple, deterministic checks."""

    async def reflect(
        self,
        artifact_type: str,
        artifact: Any,
        project: Project,
        request: str,
        focus: Optional[str] = None,
    ) -> ReflectionOutcome:
        if isinstance(artifact, ComponentSchema):
            score, strengths, improvements, text = self._component(artifact)
        elif isinstance(artifact, ImageAsset):
            score, strengths, improvements, text = self._image(artifact)
        elif isinstance(artifact, ProjectPlan):
            score, strengths, improvements, text = self._plan(artifact)
        elif isinstance(artifact, Screenshot):
            score, strengths, improvements, text = self._screenshot(artifact)
        else:
            score, strengths, improvements, text = BASE_SCORE, [], [], str(artifact)

        coverage = _overlap(request, text)
        score += 2.0 * coverage - 1.0
        if coverage >= 0.5:
            alignment = f"Matches the request well ({coverage:.0%} of key terms covered)"
        else:
            alignment = f"Only partially reflects the request ({coverage:.0%} of key terms covered)"
            improvements.append("Align the artifact more closely with the original request")

        if focus:
            focus_terms = keywords(focus)
            if focus_terms and not focus_terms & keywords(text):
                improvements.append(f"Address the requested focus: {focus}")

        score = round(min(max(score, 0.0), 10.0), 1)
        logger.debug("Reflected on %s: %.1f", artifact_type, score)
        return ReflectionOutcome(
            score=score,
            strengths=strengths,
            improvements=improvements,
            alignment=alignment,
        )

    def _component(self, component: ComponentSchema) -> Tuple[float, List[str], List[str], str]:
        score, strengths, improvements = BASE_SCORE, [], []
        code = component.generated_code or ""
        if code:
            score += 1.5
            strengths.append("Component has generated source code")
        else:
            improvements.append("Generate source code for the component")
        if "className" in code:
            score += 1.0
            strengths.append("Uses utility classes for styling")
        if "aria-" in code or "alt=" in code:
            score += 1.0
            strengths.append("Includes accessibility attributes")
        else:
            improvements.append("Add accessibility attributes (aria labels, alt text)")
        if component.props:
            score += 0.5
            strengths.append("Exposes configurable props")
        text = " ".join(filter(None, [component.name, component.description, code]))
        return score, strengths, improvements, text

    def _image(self, asset: ImageAsset) -> Tuple[float, List[str], List[str], str]:
        score, strengths, improvements = BASE_SCORE, [], []
        if len(asset.prompt.split()) >= 8:
            score += 1.0
            strengths.append("Detailed generation prompt")
        else:
            improvements.append("Use a more descriptive prompt")
        if asset.cdn_url:
            score += 1.0
            strengths.append("Hosted on the CDN")
        elif asset.base64:
            score += 0.5
            strengths.append("Image data is available for hosting")
        if asset.background == "transparent":
            strengths.append("Transparent background suits layering in components")
        return score, strengths, improvements, f"{asset.name} {asset.prompt}"

    def _plan(self, plan: ProjectPlan) -> Tuple[float, List[str], List[str], str]:
        score, strengths, improvements = BASE_SCORE, [], []
        tasks = list(plan.iter_tasks())
        if 2 <= len(plan.phases) <= 4:
            score += 1.5
            strengths.append(f"Focused plan with {len(plan.phases)} phases")
        else:
            improvements.append("Keep the plan to 2-4 phases")
        if tasks and all(t.estimated_hours > 0 for t in tasks):
            score += 1.0
            strengths.append("Every task carries an estimate")
        else:
            improvements.append("Estimate the effort of every task")
        if plan.overview:
            score += 0.5
        text = " ".join([plan.title, plan.overview, *(t.title for t in tasks)])
        return score, strengths, improvements, text

    def _screenshot(self, screenshot: Screenshot) -> Tuple[float, List[str], List[str], str]:
        score, strengths, improvements = BASE_SCORE, [], []
        if screenshot.cdn_url:
            score += 1.0
            strengths.append("Screenshot is hosted and shareable")
        if screenshot.analysis:
            score += 1.0
            strengths.append("Includes a visual analysis")
        else:
            improvements.append("Analyze the captured preview")
        return score, strengths, improvements, " ".join(str(v) for v in screenshot.analysis.values())
