# Copyright 2026 Firefly Software Solutions Inc.
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
"""doublecsrf Security — double-submit cookie CSRF protection."""

from doublecsrf.security.cookies import (
    DEFAULT_COOKIE_OPTIONS,
    CookieOptions,
    CookieStore,
    PendingCookies,
    StarletteCookieStore,
)
from doublecsrf.security.csrf import (
    build_token,
    compute_hmac,
    generate_random_value,
    verify_token,
)
from doublecsrf.security.guard import (
    CsrfConfig,
    CsrfContext,
    CsrfErrorConfig,
    DoubleCsrf,
    GenerateTokenOptions,
    ProtectionState,
)
from doublecsrf.security.resolvers import (
    SecretResolver,
    SessionAttributeResolver,
    SessionIdentifierResolver,
    StaticSecretResolver,
)

__all__ = [
    "CookieOptions",
    "CookieStore",
    "CsrfConfig",
    "CsrfContext",
    "CsrfErrorConfig",
    "DEFAULT_COOKIE_OPTIONS",
    "DoubleCsrf",
    "GenerateTokenOptions",
    "PendingCookies",
    "ProtectionState",
    "SecretResolver",
    "SessionAttributeResolver",
    "SessionIdentifierResolver",
    "StarletteCookieStore",
    "StaticSecretResolver",
    "build_token",
    "compute_hmac",
    "generate_random_value",
    "verify_token",
]
