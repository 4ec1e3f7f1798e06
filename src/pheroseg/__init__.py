# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""PheroSeg — Ant-Colony Image Segmentation.

A colony of stochastic agents deposits pheromone on an RGB image; the
accumulated pheromone is turned into closed contours, flood-filled into
regions, and every attempt is scored on three competing objectives kept
in a Pareto archive.
"""

__version__ = "0.3.0"
__author__ = "Vasile Lucian Borbeleac"
__copyright__ = "© 2024-2026 FRAGMERGENT TECHNOLOGY S.R.L."
