"""Zentrale Konfiguration via Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from uptake_lab.domain.optimizer import NelderMeadOptions


class Settings(BaseSettings):
    """Application settings, loaded from environment / .env file."""

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = "INFO"

    # Adoptions-Fit (Nelder-Mead)
    adoption_fit_max_iterations: int = 350
    adoption_fit_tolerance: float = 1e-8
    adoption_fit_initial_step: float = 0.22

    # Persistenz-Fit (KM-Daten)
    survival_fit_max_iterations: int = 600
    survival_fit_tolerance: float = 1e-7
    survival_fit_initial_step: float = 0.2

    # Multi-Start: Verschiebung in Anteilen der Parameter-Spannweite
    fit_restart_spread: float = 0.08

    max_scenarios: int = 3
    max_cohort_months: int = 72

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def adoption_fit_options(self) -> NelderMeadOptions:
        return NelderMeadOptions(
            max_iterations=self.adoption_fit_max_iterations,
            tolerance=self.adoption_fit_tolerance,
            initial_step=self.adoption_fit_initial_step,
        )

    @property
    def survival_fit_options(self) -> NelderMeadOptions:
        return NelderMeadOptions(
            max_iterations=self.survival_fit_max_iterations,
            tolerance=self.survival_fit_tolerance,
            initial_step=self.survival_fit_initial_step,
        )
