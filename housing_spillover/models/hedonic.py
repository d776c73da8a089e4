"""Log-linear hedonic regression with cohort dummies and fixed effects."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
import logging

from ..config import constants
from ..utils.exceptions import (
    InsufficientDataError,
    ModelSpecificationError,
    SingularDesignError
)
from .cohorts import CohortGroup, Grouping, groups_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    """One hedonic specification: which grouping, reference level and fixed effects."""
    
    name: str
    grouping: Grouping
    reference: CohortGroup
    fixed_effects: Tuple[str, ...] = tuple(constants.FIXED_EFFECT_COLUMNS)
    contrasts: Tuple[Tuple[CohortGroup, CohortGroup], ...] = ()
    
    def __post_init__(self):
        if self.reference not in groups_for(self.grouping):
            raise ModelSpecificationError(
                f"Reference {self.reference.value!r} is not a "
                f"{Grouping(self.grouping).value} group"
            )
        unknown = set(self.fixed_effects) - set(constants.FIXED_EFFECT_COLUMNS)
        if unknown:
            raise ModelSpecificationError(f"Unknown fixed effects: {sorted(unknown)}")
        for pair in self.contrasts:
            for group in pair:
                if group not in groups_for(self.grouping):
                    raise ModelSpecificationError(
                        f"Contrast group {group.value!r} is not a "
                        f"{Grouping(self.grouping).value} group"
                    )


DEFAULT_MODEL_SPECS = (
    ModelSpec(
        name="inside_only",
        grouping=Grouping.INSIDE_ONLY,
        reference=CohortGroup.OUTSIDE,
        contrasts=(
            (CohortGroup.POST, CohortGroup.PRE),
            (CohortGroup.MID, CohortGroup.PRE),
        )
    ),
    ModelSpec(
        name="full",
        grouping=Grouping.FULL,
        reference=CohortGroup.OUTSIDE_PRE,
        contrasts=(
            (CohortGroup.POST, CohortGroup.PRE),
            (CohortGroup.OUTSIDE_POST, CohortGroup.OUTSIDE_MID),
            (CohortGroup.POST, CohortGroup.OUTSIDE_POST),
        )
    ),
)


@dataclass
class CoefficientEstimate:
    """A log-scale point estimate with its normal confidence interval."""
    
    label: str
    estimate: float
    std_error: float
    z: float = constants.CONFIDENCE_Z
    
    @property
    def lower(self) -> float:
        return self.estimate - self.z * self.std_error
    
    @property
    def upper(self) -> float:
        return self.estimate + self.z * self.std_error
    
    @property
    def multiplier(self) -> float:
        """exp(estimate): multiplicative effect on price."""
        return float(np.exp(self.estimate))
    
    @property
    def percent_effect(self) -> float:
        return (np.exp(self.estimate) - 1.0) * 100.0
    
    @property
    def percent_lower(self) -> float:
        return (np.exp(self.lower) - 1.0) * 100.0
    
    @property
    def percent_upper(self) -> float:
        return (np.exp(self.upper) - 1.0) * 100.0
    
    def to_dict(self) -> Dict[str, float]:
        return {
            'term': self.label,
            'estimate': self.estimate,
            'std_error': self.std_error,
            'ci_lower': self.lower,
            'ci_upper': self.upper,
            'pct_effect': self.percent_effect,
            'pct_lower': self.percent_lower,
            'pct_upper': self.percent_upper,
        }


@dataclass
class HedonicResults:
    """Results from a hedonic regression fit."""
    
    spec: ModelSpec
    params: pd.Series  # Coefficients keyed by design-matrix column
    cov_params: pd.DataFrame  # Variance-covariance matrix of params
    group_columns: Dict[CohortGroup, str]  # Cohort -> coefficient slot
    n_observations: int = 0
    r_squared: Optional[float] = None
    z: float = constants.CONFIDENCE_Z
    covariance_sign: int = constants.CONTRAST_COVARIANCE_SIGN
    group_counts: Dict[str, int] = field(default_factory=dict)
    
    def _slot(self, group: CohortGroup) -> Optional[str]:
        """Coefficient column for ``group``; None for the reference level."""
        group = CohortGroup(group)
        if group is self.spec.reference:
            return None
        if group not in self.group_columns:
            raise ModelSpecificationError(
                f"Group {group.value!r} was not estimated in model {self.spec.name!r}"
            )
        return self.group_columns[group]
    
    def group_effect(self, group: CohortGroup) -> CoefficientEstimate:
        """
        Coefficient of ``group`` relative to the reference level.
        
        Raises
        ------
        ModelSpecificationError
            If ``group`` is the reference or was not estimated
        """
        slot = self._slot(group)
        if slot is None:
            raise ModelSpecificationError(
                f"{CohortGroup(group).value!r} is the reference level of {self.spec.name!r}"
            )
        return CoefficientEstimate(
            label=CohortGroup(group).value,
            estimate=float(self.params[slot]),
            std_error=float(np.sqrt(self.cov_params.loc[slot, slot])),
            z=self.z
        )
    
    def group_effects(self) -> List[CoefficientEstimate]:
        """Estimates for every non-reference group, in label order."""
        return [
            self.group_effect(group)
            for group in groups_for(self.spec.grouping)
            if group in self.group_columns
        ]
    
    def contrast(
        self,
        group_a: CohortGroup,
        group_b: CohortGroup,
        covariance_sign: Optional[int] = None
    ) -> CoefficientEstimate:
        """
        Difference between two group coefficients, ``a - b``.
        
        Standard error is ``sqrt(var(a) + var(b) + sign * 2 * cov(a, b))``
        with ``sign`` defaulting to the results' ``covariance_sign``. The
        reference level enters with coefficient and variance zero.
        """
        if covariance_sign is None:
            covariance_sign = self.covariance_sign
        
        slot_a = self._slot(group_a)
        slot_b = self._slot(group_b)
        
        coef_a = float(self.params[slot_a]) if slot_a else 0.0
        coef_b = float(self.params[slot_b]) if slot_b else 0.0
        var_a = float(self.cov_params.loc[slot_a, slot_a]) if slot_a else 0.0
        var_b = float(self.cov_params.loc[slot_b, slot_b]) if slot_b else 0.0
        cov_ab = float(self.cov_params.loc[slot_a, slot_b]) if slot_a and slot_b else 0.0
        
        variance = var_a + var_b + covariance_sign * 2 * cov_ab
        
        return CoefficientEstimate(
            label=f"{CohortGroup(group_a).value}-{CohortGroup(group_b).value}",
            estimate=coef_a - coef_b,
            std_error=float(np.sqrt(max(variance, 0.0))),
            z=self.z
        )
    
    def contrasts(self) -> List[CoefficientEstimate]:
        """Contrasts listed on the model spec; pairs with an unestimated group are skipped."""
        estimates = []
        for group_a, group_b in self.spec.contrasts:
            try:
                estimates.append(self.contrast(group_a, group_b))
            except ModelSpecificationError as exc:
                logger.warning(f"Skipping contrast {group_a.value}-{group_b.value}: {exc}")
        return estimates
    
    def to_dataframe(self) -> pd.DataFrame:
        """Group effects and contrasts as one table."""
        rows = []
        for kind, estimates in (('group', self.group_effects()), ('contrast', self.contrasts())):
            for estimate in estimates:
                row = {'model': self.spec.name, 'kind': kind}
                row.update(estimate.to_dict())
                rows.append(row)
        
        df = pd.DataFrame(rows)
        df['n_observations'] = self.n_observations
        df['r_squared'] = self.r_squared
        return df


class HedonicRegressor:
    """
    OLS of log sale price on structure, cohort and fixed-effect dummies.
    
    Implements the regression:
    log(amount) = a + b1 * log(square_footage) + b2 * age
                  + sum_g d_g * 1[group = g] + year FE + tract FE + e
    
    The reference group and the first sorted level of every fixed effect are
    omitted for identification.
    """
    
    def __init__(
        self,
        spec: ModelSpec,
        z: float = constants.CONFIDENCE_Z,
        covariance_sign: int = constants.CONTRAST_COVARIANCE_SIGN,
        cov_type: str = 'nonrobust'
    ):
        """
        Initialize the regressor.
        
        Parameters
        ----------
        spec : ModelSpec
            Grouping, reference level and fixed effects
        z : float, default 1.96
            Critical value for confidence intervals
        covariance_sign : int, default 1
            Sign of the covariance term in contrast standard errors
        cov_type : str, default 'nonrobust'
            Covariance estimator passed to statsmodels
        """
        self.spec = spec
        self.z = z
        self.covariance_sign = covariance_sign
        self.cov_type = cov_type
    
    @property
    def required_columns(self) -> List[str]:
        return ['amount', 'square_footage', 'age', 'group'] + list(self.spec.fixed_effects)
    
    def fit(self, df: pd.DataFrame) -> HedonicResults:
        """
        Fit the hedonic regression.
        
        Parameters
        ----------
        df : pd.DataFrame
            Filtered sales carrying amount, square_footage, age, group and
            the fixed-effect columns
            
        Returns
        -------
        HedonicResults
            Fitted coefficients with the cohort slot map
            
        Raises
        ------
        InsufficientDataError
            If there are no more observations than parameters
        ModelSpecificationError
            If the reference group is absent or an unexpected group appears
        SingularDesignError
            If the design matrix is rank deficient
        """
        missing = set(self.required_columns) - set(df.columns)
        if missing:
            raise ModelSpecificationError(f"Missing required columns: {sorted(missing)}")
        
        data = df[self.required_columns].dropna()
        dropped = len(df) - len(data)
        if dropped:
            logger.info(f"Dropped {dropped:,} rows with missing model inputs")
        
        allowed = {g.value for g in groups_for(self.spec.grouping)}
        unexpected = set(data['group'].unique()) - allowed
        if unexpected:
            raise ModelSpecificationError(
                f"Groups {sorted(unexpected)} do not belong to "
                f"{Grouping(self.spec.grouping).value} grouping"
            )
        if not (data['group'] == self.spec.reference.value).any():
            raise ModelSpecificationError(
                f"Reference group {self.spec.reference.value!r} has no observations"
            )
        
        X, group_columns = self._create_design_matrix(data)
        y = np.log(data['amount'].astype(float).to_numpy())
        
        n_obs, n_params = X.shape
        logger.info(
            f"Fitting hedonic model {self.spec.name!r}: "
            f"{n_obs:,} observations, {n_params} parameters"
        )
        
        if n_obs <= n_params:
            raise InsufficientDataError(
                f"{n_obs} observations cannot identify {n_params} parameters"
            )
        
        rank = np.linalg.matrix_rank(X.to_numpy())
        if rank < n_params:
            raise SingularDesignError(
                f"Design matrix for {self.spec.name!r} has rank {rank} < {n_params} columns"
            )
        
        fitted = sm.OLS(y, X).fit(cov_type=self.cov_type)
        
        results = HedonicResults(
            spec=self.spec,
            params=fitted.params,
            cov_params=fitted.cov_params(),
            group_columns=group_columns,
            n_observations=int(fitted.nobs),
            r_squared=float(fitted.rsquared),
            z=self.z,
            covariance_sign=self.covariance_sign,
            group_counts=data['group'].value_counts().to_dict()
        )
        
        logger.info(f"Hedonic model {self.spec.name!r} complete: R² = {results.r_squared:.4f}")
        
        return results
    
    def _create_design_matrix(
        self,
        data: pd.DataFrame
    ) -> Tuple[pd.DataFrame, Dict[CohortGroup, str]]:
        """
        Build the design matrix and the cohort -> column map.
        
        Columns: const, log_square_footage, age, ``group[<label>]`` for every
        observed non-reference group, then ``<fe>[<level>]`` dummies.
        """
        columns = {
            'const': np.ones(len(data)),
            'log_square_footage': np.log(data['square_footage'].astype(float).to_numpy()),
            'age': data['age'].astype(float).to_numpy(),
        }
        
        group_columns: Dict[CohortGroup, str] = {}
        observed = set(data['group'].unique())
        for group in groups_for(self.spec.grouping):
            if group is self.spec.reference or group.value not in observed:
                continue
            name = f"group[{group.value}]"
            columns[name] = (data['group'] == group.value).to_numpy(dtype=float)
            group_columns[group] = name
        
        for fe in self.spec.fixed_effects:
            values = data[fe]
            levels = sorted(values.unique())
            for level in levels[1:]:
                columns[f"{fe}[{level}]"] = (values == level).to_numpy(dtype=float)
        
        X = pd.DataFrame(columns, index=data.index)
        
        return X, group_columns
