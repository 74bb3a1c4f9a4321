"""Source Docs - turns genealogy Evidence Packs into markdown dossiers.

An external extractor captures the sources attached to one person. This
package validates that Evidence Pack, optionally redacts personal data,
renders a deterministic raw dossier and keeps a user-curated contextualized
dossier per extraction run.

Components:
- validation: Evidence Pack acceptance checks
- redaction: e-mail/phone/SSN redaction and living-person flags
- rendering: raw and contextualized markdown layouts
- store: file and SQLite run/document stores
- pipeline: import and contextualized document workflow
- llm: OpenAI-compatible client and staged analysis
- api: FastAPI routes
"""
