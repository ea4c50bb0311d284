# -*- coding: utf-8 -*-
"""Intake domain (per-date nutrient aggregation).

Daily and weekly totals live in separate tables with identical layout; the
``scope`` argument selects the table.
"""
