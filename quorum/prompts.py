"""Prompt templates for application generation."""

from __future__ import annotations

from collections.abc import Sequence

CODE_SYSTEM_PROMPT = """You are an expert full-stack developer. Generate complete, production-ready code with:
- All necessary files organized in proper directory structure
- Complete implementations (no TODOs or placeholders)
- Error handling and validation
- Proper types (TypeScript types or Python type hints)
- Modern best practices
- Clear comments explaining complex logic

Format each file as:
```language // filename.ext
code here
```"""

DATABASE_SYSTEM_PROMPT = """Generate a complete database schema with:
- Well-designed tables with proper relationships
- Indexes for performance
- Migrations for version control
- Type-safe ORM models
- Seed data for testing"""

AUTH_SYSTEM_PROMPT = """Implement secure authentication with:
- JWT or session-based auth
- Password hashing (bcrypt/argon2)
- OAuth providers (Google, GitHub)
- Email verification
- Password reset flow
- Rate limiting
- CSRF protection"""

PAYMENTS_SYSTEM_PROMPT = """Implement payment integration with:
- Stripe integration
- Webhook handling
- Subscription management
- Invoice generation
- Payment retry logic
- Idempotency for safety"""

SYSTEM_PROMPTS = {
    "code": CODE_SYSTEM_PROMPT,
    "database": DATABASE_SYSTEM_PROMPT,
    "auth": AUTH_SYSTEM_PROMPT,
    "payments": PAYMENTS_SYSTEM_PROMPT,
}


def build_system_prompt(
    *, require_database: bool = False, require_auth: bool = False, require_payments: bool = False
) -> str:
    sections = [SYSTEM_PROMPTS["code"]]
    if require_database:
        sections.append(SYSTEM_PROMPTS["database"])
    if require_auth:
        sections.append(SYSTEM_PROMPTS["auth"])
    if require_payments:
        sections.append(SYSTEM_PROMPTS["payments"])
    return "\n\n".join(sections)


def build_prompt(
    prompt: str,
    *,
    framework: str | None = None,
    features: Sequence[str] = (),
    require_database: bool = False,
    require_auth: bool = False,
    require_payments: bool = False,
) -> str:
    lines = [prompt, "", f"Generate a complete {framework or 'full-stack'} application.", ""]
    lines.append("Requirements:")
    if framework:
        lines.append(f"- Framework: {framework}")
    if features:
        lines.append("- Features:")
        lines.extend(f"  * {feature}" for feature in features)
    if require_database:
        lines.append("- Include database schema and migrations")
    if require_auth:
        lines.append("- Include authentication (OAuth + JWT)")
    if require_payments:
        lines.append("- Include Stripe payment integration")
    lines.append("")
    lines.append("Deliver all files with proper structure. Use code blocks with filenames.")
    return "\n".join(lines)
