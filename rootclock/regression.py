import numpy as np
from scipy import stats


class Regression(object):
    """
    Ordinary least squares fit y = intercept + gradient*x, e.g. of root-to-tip
    distance (y) against sampling date (x).
    """

    def __init__(self, x, y):
        self.x = np.asarray(x, dtype=float)
        self.y = np.asarray(y, dtype=float)
        if self.x.shape!=self.y.shape:
            raise ValueError("Regression: x and y should have the same length!")
        if self.x.shape[0]<2 or np.var(self.x)==0:
            raise ValueError("Regression: no variation in x values!")

        fit = stats.linregress(self.x, self.y)
        self.gradient = fit.slope
        self.intercept = fit.intercept
        self.correlation_coefficient = fit.rvalue
        self.stderr = fit.stderr
        self.residuals = self.y - self.predict(self.x)


    @property
    def n(self):
        return self.x.shape[0]

    @property
    def slope(self):
        return self.gradient

    @property
    def y_intercept(self):
        return self.intercept

    @property
    def x_intercept(self):
        """the x value at which the fit crosses y=0, e.g. the root date"""
        return -self.intercept/self.gradient

    @property
    def r_squared(self):
        return self.correlation_coefficient**2

    @property
    def sum_squared_residuals(self):
        return float(np.sum(self.residuals**2))

    @property
    def residual_mean_squared(self):
        """sum of squared residuals over the n-2 degrees of freedom"""
        if self.n<3:
            return np.nan
        return self.sum_squared_residuals/(self.n-2)

    def predict(self, x):
        return self.intercept + self.gradient*np.asarray(x, dtype=float)

    def residual(self, x, y):
        return y - self.predict(x)

    def to_dict(self):
        return {'slope':self.gradient, 'intercept':self.intercept,
                'x_intercept':self.x_intercept, 'r_val':self.correlation_coefficient,
                'r_squared':self.r_squared, 'rms':self.residual_mean_squared}

    def __str__(self):
        return ('Root-Tip-Regression:\n --rate:\t%1.3e\n --root date:\t%1.2f\n --r^2:  \t%1.2f\n --rms:  \t%1.3e\n'
                %(self.gradient, self.x_intercept, self.r_squared, self.residual_mean_squared))
