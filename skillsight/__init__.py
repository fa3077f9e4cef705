"""
SkillSight Learning Analytics
=============================

Predicts assessment scores and groups students into learning personas from
cognitive skill measurements.

Modules:
    - data_loader: Records, YAML configuration and CSV ingestion
    - synthetic: Synthetic cohort generation
    - linalg: Matrix transpose, multiply and inversion
    - regression: Normal-equation linear regression predictor
    - normalizer: Z-score feature normalization
    - clustering: K-means cluster engine
    - personas: Persona assignment and cluster classification
    - metrics: R², MSE and correlation
    - evaluation: Model evaluation and metric reports
    - insights: Cohort statistics and recommendations
    - reporting: Figures for regression and persona results
"""

__version__ = "1.0.0"
__author__ = "Predictive Analytics Team"
