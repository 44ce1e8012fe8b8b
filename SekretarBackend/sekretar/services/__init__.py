"""Service layer package housing core business logic.

Contains the key-value stores, the archive and user directory, the EDMS
export codec, the Gemini-backed LLM service, and the three state machines
(request orchestration, audio capture, compliance review) that routes drive.
"""
