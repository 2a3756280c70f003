"""
StackLite Backend — API Schemas
=================================

Pydantic models for request envelopes and response bodies. Field names are
snake_case in Python and camelCase on the wire (`alias_generator=to_camel`);
ids are exposed as `_id`.
"""
