"""
StackLite Backend — Domain Layer
==================================

What:  Pure, storage-free rules for the question/answer thread.
Why:   The invariants (one accepted answer, one vote per user per direction,
       owner-only transitions) live here so they can be tested without a
       database or HTTP stack.
"""
