"""
ML forecasting layer — a small feed-forward network over lag + calendar features.

Modules
-------
base             : Trainable / Predictable capability protocols.
feature_selector : Which encoded columns are model inputs; float matrix builders.
mlp_model        : MLPForecaster (scikit-learn MLPRegressor, two hidden layers).
splits           : Date-threshold train / evaluation partition.
metrics          : MAE, RMSE, MAPE on the original scale.
trainer          : train_model() — builds an MLPForecaster from ModelConfig and fits it.
predictor        : predict_rows() with positional alignment checks; forward forecasts.
rescaler         : Map normalized predictions back to the original scale.
"""
