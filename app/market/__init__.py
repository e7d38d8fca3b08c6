"""Clients for CMS claims, openFDA and ClinicalTrials.gov market data."""
