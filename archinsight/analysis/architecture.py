# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#      https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Architecture style classification from type names and base types.
"""

from collections import Counter
from typing import Iterable

from archinsight.analysis.models import ArchitectureSummary, Declaration
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


STYLE_NONE = "none"
STYLE_MVC = "mvc"
STYLE_SERVICE_ORIENTED = "service_oriented"
STYLE_COMPONENT_BASED = "component_based"

# Share of component-derived classes above which a project is component based
COMPONENT_SHARE_THRESHOLD = 0.6

COMPONENT_LABEL = "MonoBehaviour"
DATA_ASSET_LABEL = "ScriptableObject"


class ArchitectureClassifier:
    """Assigns each class a component category and the project a style."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def _is_a(self, declaration: Declaration, label: str) -> bool:
        return declaration.has_base(self.config.category_base_types.get(label, ()))

    def component_category(self, declaration: Declaration) -> str:
        name = declaration.name
        if self._is_a(declaration, COMPONENT_LABEL):
            return "gameplay"
        if "UI" in name or "Canvas" in name:
            return "ui"
        if "Manager" in name or "Service" in name:
            return "core"
        if "Util" in name or "Helper" in name:
            return "utility"
        return "core"

    def detect_style(self, classes: list[Declaration]) -> str:
        """
        Name-based style heuristic, checked in order: MVC, service oriented,
        component based.
        """
        if not classes:
            return STYLE_NONE

        def any_named(fragment: str) -> bool:
            return any(fragment in d.name for d in classes)

        has_views = any_named("View") or any(self._is_a(d, COMPONENT_LABEL) for d in classes)
        has_models = any_named("Model") or any(self._is_a(d, DATA_ASSET_LABEL) for d in classes)
        if any_named("Controller") and has_views and has_models:
            return STYLE_MVC
        if any_named("Manager") and any_named("Service"):
            return STYLE_SERVICE_ORIENTED

        components = sum(1 for d in classes if self._is_a(d, COMPONENT_LABEL))
        if components > len(classes) * COMPONENT_SHARE_THRESHOLD:
            return STYLE_COMPONENT_BASED
        return STYLE_NONE

    def classify(self, declarations: Iterable[Declaration]) -> ArchitectureSummary:
        classes = [d for d in declarations if not d.is_interface]
        categories = Counter(self.component_category(d) for d in classes)
        style = self.detect_style(classes)
        logger.debug(f"Architecture style: {style}")
        return ArchitectureSummary(style=style, component_categories=dict(sorted(categories.items())))
