"""Pytest configuration and shared fixtures."""

import pytest
import numpy as np
import pandas as pd

from housing_spillover.config import Settings
from tests.fixtures.sample_data_generator import generate_inputs, save_sample_inputs


@pytest.fixture
def raw_tables():
    """Synthetic raw inputs keyed by dataset name."""
    return generate_inputs()


@pytest.fixture
def input_paths(tmp_path):
    """Synthetic inputs written to csv files."""
    return save_sample_inputs(tmp_path / "inputs")


@pytest.fixture
def test_settings(input_paths, tmp_path):
    """Settings pointing at the synthetic csv files."""
    return Settings(
        property_data_path=str(input_paths['properties']),
        housing_data_path=str(input_paths['housing']),
        sales_data_path=str(input_paths['sales']),
        second_program_data_path=str(input_paths['second_program']),
        output_path=str(tmp_path / "output" / "estimates.csv")
    )


@pytest.fixture
def housing_units():
    """A small unified housing table."""
    return pd.DataFrame({
        'housing_id': ['H001', 'H002', 'H003'],
        'year': [2010, 2012, 2015],
        'lat': [34.00, 34.10, 34.20],
        'lng': [-118.00, -118.10, -118.20],
        'program': ['lihtc', 'lihtc', 'barnes']
    })


@pytest.fixture
def matched_sales():
    """Classified-ready matched sales covering every filter."""
    return pd.DataFrame({
        'apn': ['A1', 'A2', 'A3', 'A4', 'A5', 'A6', 'A7', 'A8', 'A9'],
        'sale_year': [2010, 2010, 2010, 2010, 2010, 2010, 2010, 2010, 2016],
        'amount': [300000.0, 10000000.0, 10000001.0, 0.0, 250000.0,
                   275000.0, 320000.0, 410000.0, 380000.0],
        'square_footage': [1500.0, 2000.0, 1800.0, 1200.0, 0.0,
                           1400.0, 1600.0, 1700.0, 1900.0],
        'age': [20.0, 15.0, 30.0, 10.0, 5.0, -1.0, np.nan, 40.0, 12.0],
        'tract': ['T1'] * 9,
        'housing_id': ['H1'] * 9,
        'housing_year': [2012, 2012, 2012, 2012, 2012, 2012, 2012, 2012, 2009],
        'distance_miles': [0.3, 0.4, 0.2, 0.1, 0.3, 0.3, 0.3, 1.2, 0.3],
        'group': ['pre'] * 7 + ['outside', 'other'],
    })
