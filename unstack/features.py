"""
features.py

Responsibility: Declare each optional feature of a generated project in one place.

A `FeatureDescriptor` lists everything a feature contributes:
- package.json dependency entries
- files (output path -> template name under `templates/`)
- fragments for named insertion slots in shared templates
- README bullet and documentation link

`FEATURES` order is the order fragments are inserted and bullets are listed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from unstack.options import FeatureSet

# Insertion slots exposed by base templates.
LAYOUT_IMPORTS = "layout_imports"
LAYOUT_HEAD = "layout_head"

SLOTS = (LAYOUT_IMPORTS, LAYOUT_HEAD)


@dataclass(frozen=True)
class FeatureDescriptor:
    flag: str
    label: str
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    artifacts: dict[str, str] = field(default_factory=dict)
    slots: dict[str, tuple[str, ...]] = field(default_factory=dict)
    readme_feature: str = ""
    readme_link: str = ""


FEATURES: tuple[FeatureDescriptor, ...] = (
    FeatureDescriptor(
        flag="db",
        label="MongoDB",
        dependencies={"mongodb": "^6.15.0"},
        artifacts={"lib/db.ts": "db/db.ts.j2"},
        readme_feature="🗄️ **MongoDB** - Database with MongoDB",
        readme_link="[MongoDB Documentation](https://mongodb.com/docs)",
    ),
    FeatureDescriptor(
        flag="auth",
        label="Better-Auth (Authentication)",
        dependencies={"better-auth": "^1.2.7"},
        artifacts={
            "lib/auth.ts": "auth/auth.ts.j2",
            "lib/auth-client.ts": "auth/auth-client.ts.j2",
            "app/api/auth/[...all]/route.ts": "auth/route.ts.j2",
        },
        readme_feature="🔐 **Better-Auth** - Authentication with Better-Auth",
        readme_link="[Better-Auth Documentation](https://better-auth.com/docs)",
    ),
    FeatureDescriptor(
        flag="react_scan",
        label="React Scan (Performance)",
        dependencies={"react-scan": "^0.3.4"},
        artifacts={"components/ReactScan.tsx": "react_scan/ReactScan.tsx.j2"},
        slots={
            # react-scan must load before react, so its import goes first.
            LAYOUT_IMPORTS: ('import { ReactScan } from "@/components/ReactScan";',),
            LAYOUT_HEAD: ("<ReactScan />",),
        },
        readme_feature="⚡ **React Scan** - Performance analysis for React",
        readme_link="[React Scan Documentation](https://github.com/aidenybai/react-scan)",
    ),
)


def descriptor_for(flag: str) -> FeatureDescriptor:
    for descriptor in FEATURES:
        if descriptor.flag == flag:
            return descriptor
    raise KeyError(flag)


def enabled_descriptors(features: FeatureSet) -> Iterator[FeatureDescriptor]:
    # FeatureSet fields are declared in FEATURES order.
    for flag in features.enabled():
        yield descriptor_for(flag)


def feature_labels() -> list[tuple[str, str]]:
    """(flag, label) pairs for the multi-select prompt, in declaration order."""
    return [(d.flag, d.label) for d in FEATURES]
