"""Fitting dense networks to synthetic data with hand-written backprop."""
from .config import PARAMETER_RANGES, ExperimentConfig
from .data import (Batch, DataLoader, Dataset, LinearMap, Split, gaussian_noise, generate,
                   iterate_batches, nonlinear_map, power_sum_map, random_exponents, random_linear_map,
                   split)
from .errors import InvalidArgument, ShapeMismatch, SimpleNNError
from .models import Model, deep_model, linear_model, numerical_gradients
from .nodes import (Identity, LeakyReLU, LinearLayer, MSELoss, ReLU, Sigmoid, Tanh, get_activation,
                    mse_loss)
from .optimizers import Adam, Descent, Momentum, RAdam, get_optimizer
from .trainer import LossHistory, TrainingContext, build_context, evaluate, run, train, weight_error

__version__ = "0.1.0"
