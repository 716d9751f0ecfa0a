"""
Economic regime catalogue for scenario testing.

Each regime bundles market-return, inflation, rate and shock assumptions
drawn from historical episodes. Regimes map onto an InvestmentScenario
for a given base plan via EconomicScenario.to_investment_scenario().
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from errors import InvalidConfiguration
from simulation import InvestmentScenario, MarketShock

CATEGORIES = ('normal', 'recession', 'inflation', 'bull-market', 'market-crash')
BASELINE_SCENARIO_ID = 'normal-growth'


@dataclass(frozen=True)
class ReturnDistribution:
    mean: float
    volatility: float


@dataclass(frozen=True)
class InflationDistribution:
    mean: float
    volatility: float
    min: float
    max: float


@dataclass(frozen=True)
class InterestRates:
    short_term: float
    long_term: float
    federal_funds: float


@dataclass(frozen=True)
class Unemployment:
    rate: float
    trend: str  # "rising", "stable" or "falling"


@dataclass(frozen=True)
class EconomicParameters:
    market_return: ReturnDistribution
    inflation_rate: InflationDistribution
    interest_rates: InterestRates
    gdp_growth: ReturnDistribution
    unemployment: Unemployment
    market_shocks: Tuple[MarketShock, ...] = ()
    currency_volatility: float = 0.0
    international_exposure: float = 0.0


@dataclass(frozen=True)
class BaseInvestment:
    """Regime-independent part of an investment plan"""
    initial_value: float = 100_000
    time_horizon: int = 30
    target_value: Optional[float] = 500_000


@dataclass(frozen=True)
class EconomicScenario:
    """Named bundle of macro assumptions"""
    id: str
    name: str
    description: str
    category: str
    probability: float  # Long-run share of time spent in this regime
    duration: Tuple[float, float]  # (min, max) years
    parameters: EconomicParameters
    historical_precedent: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.category not in CATEGORIES:
            raise InvalidConfiguration(f"Unknown scenario category: {self.category}")

    def to_investment_scenario(self, base: Optional[BaseInvestment] = None) -> InvestmentScenario:
        """Apply this regime's assumptions to a base plan"""
        base = base or BaseInvestment()
        params = self.parameters
        return InvestmentScenario(
            initial_value=base.initial_value,
            expected_return=params.market_return.mean,
            volatility=params.market_return.volatility,
            time_horizon=base.time_horizon,
            inflation_rate=params.inflation_rate.mean,
            target_value=base.target_value,
            market_shocks=params.market_shocks,
        )


ECONOMIC_SCENARIOS: List[EconomicScenario] = [
    EconomicScenario(
        id='normal-growth',
        name='Normal Economic Growth',
        description='Typical economic conditions with moderate growth and inflation',
        category='normal',
        probability=0.60,
        duration=(2, 8),
        parameters=EconomicParameters(
            market_return=ReturnDistribution(mean=0.08, volatility=0.16),
            inflation_rate=InflationDistribution(mean=0.025, volatility=0.008, min=0.01, max=0.04),
            interest_rates=InterestRates(short_term=0.025, long_term=0.045, federal_funds=0.02),
            gdp_growth=ReturnDistribution(mean=0.025, volatility=0.01),
            unemployment=Unemployment(rate=0.045, trend='stable'),
            market_shocks=(MarketShock(probability=0.05, impact=-0.10, duration_months=3),),
            currency_volatility=0.08,
            international_exposure=0.15,
        ),
        historical_precedent='1995-2000, 2003-2007, 2012-2019',
        tags=('baseline', 'normal', 'moderate-growth'),
    ),
    EconomicScenario(
        id='recession-mild',
        name='Mild Recession',
        description='Moderate economic downturn with negative growth for 2-3 quarters',
        category='recession',
        probability=0.15,
        duration=(0.5, 2),
        parameters=EconomicParameters(
            market_return=ReturnDistribution(mean=-0.05, volatility=0.28),
            inflation_rate=InflationDistribution(mean=0.015, volatility=0.012, min=-0.01, max=0.03),
            interest_rates=InterestRates(short_term=0.01, long_term=0.025, federal_funds=0.005),
            gdp_growth=ReturnDistribution(mean=-0.02, volatility=0.015),
            unemployment=Unemployment(rate=0.07, trend='rising'),
            market_shocks=(MarketShock(probability=0.15, impact=-0.15, duration_months=6),),
            currency_volatility=0.12,
            international_exposure=0.20,
        ),
        historical_precedent='1990-1991, 2001, early COVID-19',
        tags=('recession', 'downturn', 'defensive'),
    ),
    EconomicScenario(
        id='recession-severe',
        name='Severe Recession',
        description='Deep economic contraction similar to the 2008 Financial Crisis',
        category='recession',
        probability=0.05,
        duration=(1, 3),
        parameters=EconomicParameters(
            market_return=ReturnDistribution(mean=-0.20, volatility=0.35),
            inflation_rate=InflationDistribution(mean=0.005, volatility=0.015, min=-0.02, max=0.02),
            interest_rates=InterestRates(short_term=0.001, long_term=0.015, federal_funds=0.001),
            gdp_growth=ReturnDistribution(mean=-0.06, volatility=0.02),
            unemployment=Unemployment(rate=0.10, trend='rising'),
            market_shocks=(
                MarketShock(probability=0.25, impact=-0.30, duration_months=12),
                MarketShock(probability=0.10, impact=-0.50, duration_months=6, sector='financial'),
            ),
            currency_volatility=0.18,
            international_exposure=0.25,
        ),
        historical_precedent='2008-2009 Financial Crisis, 1929 Great Depression',
        tags=('severe-recession', 'financial-crisis', 'high-risk'),
    ),
    EconomicScenario(
        id='high-inflation',
        name='High Inflation Period',
        description='Persistent high inflation similar to 1970s stagflation',
        category='inflation',
        probability=0.08,
        duration=(2, 5),
        parameters=EconomicParameters(
            market_return=ReturnDistribution(mean=0.03, volatility=0.22),
            inflation_rate=InflationDistribution(mean=0.065, volatility=0.02, min=0.04, max=0.12),
            interest_rates=InterestRates(short_term=0.055, long_term=0.075, federal_funds=0.05),
            gdp_growth=ReturnDistribution(mean=0.01, volatility=0.015),
            unemployment=Unemployment(rate=0.065, trend='stable'),
            market_shocks=(MarketShock(probability=0.08, impact=-0.12, duration_months=4),),
            currency_volatility=0.15,
            international_exposure=0.20,
        ),
        historical_precedent='1970s Oil Crisis, early 1980s',
        tags=('inflation', 'stagflation', 'commodities'),
    ),
    EconomicScenario(
        id='bull-market',
        name='Bull Market Expansion',
        description='Strong economic growth with rising asset prices',
        category='bull-market',
        probability=0.08,
        duration=(3, 10),
        parameters=EconomicParameters(
            market_return=ReturnDistribution(mean=0.15, volatility=0.18),
            inflation_rate=InflationDistribution(mean=0.02, volatility=0.006, min=0.015, max=0.035),
            interest_rates=InterestRates(short_term=0.02, long_term=0.04, federal_funds=0.015),
            gdp_growth=ReturnDistribution(mean=0.04, volatility=0.008),
            unemployment=Unemployment(rate=0.035, trend='falling'),
            market_shocks=(MarketShock(probability=0.03, impact=-0.08, duration_months=2),),
            currency_volatility=0.06,
            international_exposure=0.12,
        ),
        historical_precedent='1990s Tech Boom, 1950s-1960s',
        tags=('bull-market', 'growth', 'expansion'),
    ),
    EconomicScenario(
        id='market-crash',
        name='Market Crash',
        description='Sudden severe market decline followed by recovery',
        category='market-crash',
        probability=0.03,
        duration=(0.25, 1),
        parameters=EconomicParameters(
            market_return=ReturnDistribution(mean=-0.35, volatility=0.45),
            inflation_rate=InflationDistribution(mean=0.02, volatility=0.01, min=0.01, max=0.04),
            interest_rates=InterestRates(short_term=0.01, long_term=0.025, federal_funds=0.005),
            gdp_growth=ReturnDistribution(mean=-0.01, volatility=0.02),
            unemployment=Unemployment(rate=0.055, trend='rising'),
            market_shocks=(MarketShock(probability=0.80, impact=-0.20, duration_months=1),),
            currency_volatility=0.20,
            international_exposure=0.30,
        ),
        historical_precedent='Black Monday 1987, Dot-com crash 2000, COVID-19 March 2020',
        tags=('crash', 'volatility', 'short-term'),
    ),
]


def get_scenario_by_id(scenario_id: str) -> Optional[EconomicScenario]:
    """Get a catalogue scenario by id, or None"""
    for scenario in ECONOMIC_SCENARIOS:
        if scenario.id == scenario_id:
            return scenario
    return None


def get_scenarios_by_category(category: str) -> List[EconomicScenario]:
    """Get every catalogue scenario in a category"""
    return [scenario for scenario in ECONOMIC_SCENARIOS if scenario.category == category]


def get_baseline_scenario() -> EconomicScenario:
    """Get the normal-growth baseline"""
    return get_scenario_by_id(BASELINE_SCENARIO_ID)


def get_stress_test_scenarios() -> List[EconomicScenario]:
    """Recession, market-crash and inflation regimes"""
    return [scenario for scenario in ECONOMIC_SCENARIOS
            if scenario.category in ('recession', 'market-crash', 'inflation')]
