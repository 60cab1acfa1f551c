"""Observation model plug-ins."""

from seqhmm.emissions.categorical import CategoricalCounts, CategoricalObservations
