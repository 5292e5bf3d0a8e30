# Copyright 2025 Google LLC
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
# ==============================================================================

import re
from typing import Any, Literal

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def convert_keys(
    data: Any, direction: Literal["camel_to_snake", "snake_to_camel"]
) -> Any:
    """
    Recursively converts dictionary keys between snake_case and camelCase.

    Only keys are converted; values (including strings inside lists) are left
    untouched. Do not use on documents keyed by free text, e.g. user
    championStats, whose keys are champion names.
    """
    convert = camel_to_snake if direction == "camel_to_snake" else snake_to_camel
    if isinstance(data, dict):
        return {
            (convert(k) if isinstance(k, str) else k): convert_keys(v, direction)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item, direction) for item in data]
    return data


def drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}
