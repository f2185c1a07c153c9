"""
Services Layer

Pure business logic services that:
- Accept domain inputs (IDs, an EntityStore, plain lists)
- Return domain outputs (dataclasses, models)
- Do NOT depend on HTTP request/response objects
- Only write through the EntityStore, inside one transaction per operation
"""
