# accounting/models/sequence.py

from __future__ import annotations

from django.db import models


class Sequence(models.Model):
    """
    Named gap-free counter (e.g. "JV-2026").

    Incremented only under SELECT ... FOR UPDATE by sequence_service.
    """

    key = models.CharField(max_length=32, unique=True)
    last_value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"{self.key}={self.last_value}"
