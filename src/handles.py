#!/usr/bin/env python3
# handles.py - Generational handle registry for objects owned by the core

import logging

logger = logging.getLogger(__name__)


class Handle(tuple):
    """Opaque (registry id, slot, generation) token handed out to callers."""

    __slots__ = ()

    def __new__(cls, registry_id, slot, generation):
        return super().__new__(cls, (registry_id, slot, generation))

    @property
    def slot(self):
        return self[1]

    @property
    def generation(self):
        return self[2]

    def __repr__(self):
        return f'Handle(slot={self[1]}, generation={self[2]})'


class HandleRegistry:
    """
    Owns objects on behalf of callers that only hold handles.

    Slots are reused after removal, but every reuse bumps the slot's
    generation, so a handle kept after remove() no longer resolves. Handles
    issued by another registry never resolve either.
    """

    def __init__(self, name='handle'):
        self.name = name
        self._slots = []        # object or None
        self._generations = []  # current generation per slot
        self._free = []

    def __len__(self):
        return len(self._slots) - len(self._free)

    def add(self, obj):
        if self._free:
            slot = self._free.pop()
            self._slots[slot] = obj
        else:
            slot = len(self._slots)
            self._slots.append(obj)
            self._generations.append(0)
        handle = Handle(id(self), slot, self._generations[slot])
        logger.debug(f'{self.name} registered: {handle!r}')
        return handle

    def _valid(self, handle):
        if not isinstance(handle, Handle) or handle[0] != id(self):
            return False
        slot = handle.slot
        return (0 <= slot < len(self._slots)
                and self._slots[slot] is not None
                and self._generations[slot] == handle.generation)

    def get(self, handle):
        """The object behind ``handle``, or None if it is stale or foreign."""
        if not self._valid(handle):
            return None
        return self._slots[handle.slot]

    def remove(self, handle):
        """
        Release the object behind ``handle``.

        Returns:
            bool: True if something was released; False for stale, foreign or
                  None handles (releasing twice is harmless)
        """
        if not self._valid(handle):
            logger.debug(f'{self.name} release ignored for invalid handle {handle!r}')
            return False
        slot = handle.slot
        self._slots[slot] = None
        self._generations[slot] += 1
        self._free.append(slot)
        logger.debug(f'{self.name} released: {handle!r}')
        return True
