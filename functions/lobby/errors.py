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


class LobbyError(Exception):
    """Base error for rejected party/scrim/user operations.

    Carries the HTTP status the API layer answers with.
    """

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(LobbyError):
    status_code = 400


class PermissionDeniedError(LobbyError):
    status_code = 403


class NotFoundError(LobbyError):
    status_code = 404


class ConflictError(LobbyError):
    status_code = 409
