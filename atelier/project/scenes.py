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

"""Pure scene operations over the project document.

Creation is split in two steps so ids are generated once:
- ``build_*`` functions validate against a project and return the new object
- ``add_scene`` / ``place_component`` insert a pre-built object into any
  project and are safe to use inside an updater

``create_scene`` and ``add_component_to_scene`` combine both steps and
return the updated project together with the created object. Nothing here
holds state between calls.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from atelier.project.schema import (
    Position,
    Project,
    Scene,
    SceneComponent,
    SceneLayout,
    utc_now,
)


class SceneError(ValueError):
    """Raised when a scene operation references something that does not exist."""


def _replace_scene(project: Project, scene: Scene) -> Project:
    scenes = [scene if s.id == scene.id else s for s in project.scenes]
    return project.model_copy(update={"scenes": scenes, "updated_at": utc_now()})


def build_scene(
    project: Project,
    name: str,
    description: str = "",
    layout_type: str = "freeform",
    width: int = 1200,
    height: int = 800,
    components: Optional[Iterable[Dict[str, Any]]] = None,
) -> Scene:
    """Build a scene, placing the listed components that exist in ``project``.

    Component entries referencing unknown ids are skipped.
    """
    instances = []
    for entry in components or ():
        component_id = entry.get("component_id") or entry.get("componentId")
        if not component_id or project.find_component(component_id) is None:
            continue
        instances.append(
            SceneComponent(
                component_id=component_id,
                props=dict(entry.get("props") or {}),
                position=Position(x=entry.get("x", 0), y=entry.get("y", 0)),
            )
        )

    return Scene(
        name=name,
        description=description,
        layout=SceneLayout(type=layout_type, width=int(width), height=int(height)),
        instances=instances,
    )


def add_scene(project: Project, scene: Scene, activate: bool = True) -> Project:
    update: Dict[str, Any] = {"scenes": [*project.scenes, scene], "updated_at": utc_now()}
    if activate:
        update["active_scene_id"] = scene.id
    return project.model_copy(update=update)


def create_scene(project: Project, name: str, activate: bool = True, **kwargs: Any) -> Tuple[Project, Scene]:
    """Build a scene and add it to the project.

    Returns:
        Tuple of (updated project, created scene)
    """
    scene = build_scene(project, name, **kwargs)
    return add_scene(project, scene, activate=activate), scene


def build_instance(
    project: Project,
    scene_id: str,
    component_id: str,
    x: float = 0,
    y: float = 0,
    props: Optional[Dict[str, Any]] = None,
) -> SceneComponent:
    """Build a component instance for a scene.

    Raises:
        SceneError: If the scene or the component does not exist
    """
    if project.find_scene(scene_id) is None:
        raise SceneError(f"Scene with ID {scene_id} not found")
    if project.find_component(component_id) is None:
        raise SceneError(f"Component with ID {component_id} not found")
    return SceneComponent(
        component_id=component_id,
        props=dict(props or {}),
        position=Position(x=x, y=y),
    )


def place_component(project: Project, scene_id: str, instance: SceneComponent) -> Project:
    """Insert a pre-built instance into a scene."""
    scene = project.find_scene(scene_id)
    if scene is None:
        raise SceneError(f"Scene with ID {scene_id} not found")
    updated_scene = scene.model_copy(
        update={"instances": [*scene.instances, instance], "updated_at": utc_now()}
    )
    return _replace_scene(project, updated_scene)


def add_component_to_scene(
    project: Project, scene_id: str, component_id: str, **kwargs: Any
) -> Tuple[Project, SceneComponent]:
    instance = build_instance(project, scene_id, component_id, **kwargs)
    return place_component(project, scene_id, instance), instance


def remove_component_instance(project: Project, scene_id: str, instance_id: str) -> Project:
    """Remove one instance from a scene. Unknown instance ids leave the scene unchanged."""
    scene = project.find_scene(scene_id)
    if scene is None:
        raise SceneError(f"Scene with ID {scene_id} not found")
    instances = [i for i in scene.instances if i.id != instance_id]
    return _replace_scene(
        project, scene.model_copy(update={"instances": instances, "updated_at": utc_now()})
    )


def set_active_scene(project: Project, scene_id: Optional[str]) -> Project:
    if scene_id is not None and project.find_scene(scene_id) is None:
        raise SceneError(f"Scene with ID {scene_id} not found")
    return project.model_copy(update={"active_scene_id": scene_id, "updated_at": utc_now()})


def delete_scene(project: Project, scene_id: str) -> Project:
    """Delete a scene, clearing the active scene if it was the one removed."""
    scenes = [s for s in project.scenes if s.id != scene_id]
    active = None if project.active_scene_id == scene_id else project.active_scene_id
    return project.model_copy(
        update={"scenes": scenes, "active_scene_id": active, "updated_at": utc_now()}
    )
