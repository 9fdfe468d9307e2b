from curve_builder.calibration import Calibrator
from curve_builder.config import FitterConfig
from curve_builder.instruments import Swap
from curve_builder.market import simulate_vasicek_panel
from curve_builder.models import (
    DISCRETE_MODEL_TEMPLATES,
    SPLINE_MODEL_TEMPLATES,
    VASICEK_MODEL_TEMPLATES,
    VasicekModelTemplate,
)
from curve_builder.panel import correlation, stdev
from curve_builder.sensitivity import bump_response, plot_grid, term_structure
from curve_builder.solver import fit_yield_curve


# Swap rates (in %) by maturity (in years)
DEFAULT_QUOTES = [
    (0.25, 5.39),
    (1, 5.39),
    (2, 5.21),
    (3, 5.16),
    (4, 5.16),
    (5, 5.18),
    (7, 5.23),
    (10, 5.29),
    (30, 5.41),
]


def main():
    cfg = FitterConfig()
    cfg.log_level = "INFO"
    cfg.apply_global_settings()

    instruments = [Swap(t, frequency=cfg.swap_frequency) for t, _ in DEFAULT_QUOTES]
    market_rates = [r / 100.0 for _, r in DEFAULT_QUOTES]

    # -------------------------------------------------------------------------
    # 1. Fit every model template to the same quotes
    # -------------------------------------------------------------------------
    print("--- 1. Fitting ---")
    print(f"{'MODEL':<40} | {'ITER':<5} | {'10Y ZERO':<10} | {'30Y ZERO':<10}")
    print("-" * 75)

    templates = SPLINE_MODEL_TEMPLATES + VASICEK_MODEL_TEMPLATES + DISCRETE_MODEL_TEMPLATES
    for template in templates:
        idx = template.select(instruments)
        used = [instruments[i] for i in idx]
        rates = [market_rates[i] for i in idx]
        try:
            model = template.create_model(used)
            discount = fit_yield_curve(model, used, rates, cfg)
            zeros = term_structure(discount, "Zero Coupon", [10.0, 30.0], cfg)["rate"]
            print(
                f"{template.name:<40} | {discount.iterations:<5d} | "
                f"{100 * zeros[0]:<10.4f} | {100 * zeros[1]:<10.4f}"
            )
        except Exception as e:
            print(f"{template.name:<40} | ERROR: {str(e)}")

    # -------------------------------------------------------------------------
    # 2. Bump response of the forward curve (cubic spline)
    # -------------------------------------------------------------------------
    print("\n--- 2. Bump response (instantaneous forward, per unit bump) ---")
    df_bump = bump_response(
        SPLINE_MODEL_TEMPLATES[-1],
        instruments,
        market_rates,
        "Instantaneous Forward",
        plot_grid(30.0)[::8],
        config=cfg,
    )
    print(df_bump.round(3).to_string(index=False))

    # -------------------------------------------------------------------------
    # 3. Covariance calibration on a simulated history
    # -------------------------------------------------------------------------
    print("\n--- 3. Calibration (2-factor Vasicek, simulated panel) ---")
    true_covar = [[1.0e-4, -2.0e-5], [-2.0e-5, 4.0e-5]]
    template = VasicekModelTemplate([2, 10])
    panel, _ = simulate_vasicek_panel(
        template, instruments, true_covar, n_dates=500, start="2020-01-01"
    )
    result = Calibrator(cfg).calibrate(template, [Swap(t) for t in panel.columns], panel)
    print(f"Converged in {result.iterations} iterations")
    print(f"Volatility:  {stdev(result.covariance)}")
    print(f"Correlation:\n{correlation(result.covariance)}")


if __name__ == "__main__":
    main()
