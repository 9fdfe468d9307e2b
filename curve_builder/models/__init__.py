from .base import Capability, CurveModel, ModelTemplate
from .discrete import (
    DISCRETE_MODEL_TEMPLATES,
    DiscreteModelTemplate,
    DiscretizedForwardModel,
    constant_correlation_kernel,
    exponential_correlation_kernel,
    forward_iid_kernel,
    gaussian_correlation_kernel,
    log_discount_iid_kernel,
    zero_rate_iid_kernel,
)
from .spline_model import SPLINE_MODEL_TEMPLATES, BoundaryCondition, SplineModel, SplineModelTemplate
from .vasicek import VASICEK_MODEL_TEMPLATES, MeanReversionModel, VasicekModelTemplate
