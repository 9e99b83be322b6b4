# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Shared test fakes for librelease.

Usage::

    from tests._fakes import FakeVCS, manifest_yaml

    vcs = FakeVCS(manifests=[('c1', manifest_yaml({'lib1': '1.0.0'}))])
"""

from tests._fakes._manifests import (
    make_manifest as make_manifest,
    manifest_yaml as manifest_yaml,
    write_manifest as write_manifest,
)
from tests._fakes._vcs import OK as OK, FakeCommit as FakeCommit, FakeVCS as FakeVCS

__all__ = [
    'OK',
    'FakeCommit',
    'FakeVCS',
    'make_manifest',
    'manifest_yaml',
    'write_manifest',
]
