"""
Services layer - Business logic goes here.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Ledgers (case_ledger, incentive_ledger) never touch storage directly
- Workflow writes go through one store transaction per action
"""
