# Centralized tooltip/help text used across the app.

COLUMN_TOOLTIPS = {
    "mpg": "Miles per (US) gallon.",
    "cyl": "Number of cylinders.",
    "disp": "Displacement (cu. in.).",
    "hp": "Gross horsepower.",
    "drat": "Rear axle ratio.",
    "wt": "Weight (1000 lbs).",
    "qsec": "Quarter-mile time (seconds).",
    "vs": "Engine shape (0 = V-shaped, 1 = straight).",
    "am": "Transmission (0 = automatic, 1 = manual).",
    "gear": "Number of forward gears.",
    "carb": "Number of carburetors.",
}

TIDY_TOOLTIPS = {
    "term": "Model term; `intercept` first, then predictors in formula order.",
    "estimate": "Least-squares coefficient estimate.",
    "std_error": "Standard error of the estimate.",
    "statistic": "t statistic = estimate / std_error (F statistic in the model table).",
    "p_value": "Two-sided p-value of the statistic.",
    "conf_low": "Lower bound of the t confidence interval.",
    "conf_high": "Upper bound of the t confidence interval.",
    "fitted": "Predicted response for the row.",
    "resid": "Observed minus fitted response.",
    "hat": "Leverage (diagonal of the hat matrix).",
    "sigma": "Residual standard error with this row left out.",
    "cooksd": "Cook's distance: influence of the row on all fitted values.",
    "std_resid": "Residual divided by its estimated standard deviation.",
    "r_squared": "Share of response variance explained by the model.",
    "adj_r_squared": "R² penalised for the number of predictors.",
}
