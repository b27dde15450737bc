"""
Intake Domain

Multi-section intake form engine: per-field validation (CPF check digits
included), debounced validation state, change-tracking autosave, postal code
enrichment, progress per section and profession suggestions.

Structure:
- schemas.py          # Pydantic models shared with the collaborators
- fields.py           # Field catalog, sections and the per-field validator
- validation_store.py # Debounced per-field validation state
- autosave.py         # Change-tracking snapshot persistence
- enrichment.py       # Postal code lookups with stale-response guard
- progress.py         # Completion percent and section completeness
- suggestions.py      # Profession suggestions
- payload.py          # Submission payload for the profile service
- service.py          # IntakeFormService, one per hosting screen
- router.py           # Stateless HTTP helpers
"""
