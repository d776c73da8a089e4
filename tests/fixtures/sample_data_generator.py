"""Generate synthetic inputs for testing the spillover pipeline."""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict

MILES_PER_DEGREE_LAT = 69.0

# Log-price premium planted for sales inside the inner radius after opening
POST_EFFECT = 0.10


def _offset(lat: float, lng: float, miles: float, bearing: float):
    """Move ``miles`` from (lat, lng) along ``bearing`` (radians), flat-earth approximation."""
    dlat = miles * np.cos(bearing) / MILES_PER_DEGREE_LAT
    dlng = miles * np.sin(bearing) / (MILES_PER_DEGREE_LAT * np.cos(np.radians(lat)))
    return lat + dlat, lng + dlng


def generate_inputs(
    n_units: int = 6,
    parcels_per_unit: int = 120,
    noise: float = 0.05,
    seed: int = 42
) -> Dict[str, pd.DataFrame]:
    """
    Generate the four raw input tables.
    
    Housing units sit on a grid roughly four miles apart, so a parcel placed
    within 1.3 miles of a unit always has that unit as its nearest neighbour.
    Parcel distances avoid a band around the 0.5 mile radius so the planted
    effect lines up with the pipeline's classification.
    
    Parameters
    ----------
    n_units : int
        Number of LIHTC units (a third as many second-program units are added)
    parcels_per_unit : int
        Parcels scattered around each unit
    noise : float
        Standard deviation of the log-price error
    seed : int
        Random seed for reproducibility
    """
    rng = np.random.RandomState(seed)
    
    base_lat, base_lng = 34.05, -118.25
    
    units = []
    for i in range(n_units):
        lat, lng = _offset(base_lat, base_lng, 4.0 * (i // 3), 0.0)
        lat, lng = _offset(lat, lng, 4.0 * (i % 3), np.pi / 2)
        units.append({
            'HUD_ID': f'CAA{2000 + i:04d}{i:04d}',
            'YR_PIS': int(rng.randint(2008, 2015)),
            'LATITUDE': round(lat, 7),
            'LONGITUDE': round(lng, 7),
        })
    
    n_second = max(1, n_units // 3)
    second_units = []
    for j in range(n_second):
        lat, lng = _offset(base_lat, base_lng, 4.0 * (n_units // 3 + 1), 0.0)
        lat, lng = _offset(lat, lng, 4.0 * j, np.pi / 2)
        second_units.append({
            'Barnes.Year': int(rng.randint(2008, 2015)),
            'lat': round(lat, 7),
            'lng': round(lng, 7),
        })
    
    # Rows the year sanity filter must drop
    units.append({'HUD_ID': 'CAA19870001', 'YR_PIS': 1987, 'LATITUDE': 34.2, 'LONGITUDE': -118.1})
    units.append({'HUD_ID': 'CAA99990001', 'YR_PIS': 9999, 'LATITUDE': 34.3, 'LONGITUDE': -118.0})
    
    centers = [
        (u['LATITUDE'], u['LONGITUDE'], u['YR_PIS']) for u in units[:n_units]
    ] + [
        (u['lat'], u['lng'], u['Barnes.Year']) for u in second_units
    ]
    
    year_effects = {year: 0.03 * (year - 2003) for year in range(2003, 2020)}
    
    properties = []
    sales = []
    apn = 1000000
    
    for k, (lat0, lng0, housing_year) in enumerate(centers):
        for _ in range(parcels_per_unit):
            apn += 1
            band = rng.choice(['inner', 'outer', 'beyond'], p=[0.45, 0.45, 0.10])
            if band == 'inner':
                distance = rng.uniform(0.0, 0.45)
            elif band == 'outer':
                distance = rng.uniform(0.55, 0.95)
            else:
                distance = rng.uniform(1.05, 1.3)
            lat, lng = _offset(lat0, lng0, distance, rng.uniform(0, 2 * np.pi))
            
            tract = f'06037{k:02d}{int(lat * 1000) % 2:04d}'
            sqft = float(rng.randint(800, 3200))
            year_built = int(rng.randint(1950, 2001))
            
            properties.append({
                'apn': str(apn),
                'centroid': f'({lat:.7f}, {lng:.7f})',
                'tract': tract,
                'square_footage': sqft,
                'year_built': year_built,
            })
            
            for _ in range(rng.choice([1, 2])):
                sale_year = int(rng.randint(2003, 2020))
                gap = housing_year - sale_year
                effect = POST_EFFECT if band == 'inner' and sale_year > housing_year else 0.0
                log_price = (
                    11.0
                    + 0.6 * np.log(sqft)
                    - 0.003 * (sale_year - year_built)
                    + year_effects[sale_year]
                    + 0.02 * k
                    + effect
                    + rng.normal(0, noise)
                )
                sales.append({
                    'apn': str(apn),
                    'ownerdate': f'{sale_year}-{rng.randint(1, 13):02d}-{rng.randint(1, 29):02d}',
                    'amount': round(float(np.exp(log_price)), 2),
                })
    
    # Rows the sample filters must drop
    properties.append({
        'apn': '9000001', 'centroid': None, 'tract': '06037999999',
        'square_footage': 1500.0, 'year_built': 1980,
    })
    sales.append({'apn': '9000001', 'ownerdate': '2012-05-01', 'amount': 400000.0})
    sales.append({'apn': '9999999', 'ownerdate': '2012-05-01', 'amount': 400000.0})
    sales.append({'apn': properties[0]['apn'], 'ownerdate': 'not a date', 'amount': 400000.0})
    sales.append({'apn': properties[0]['apn'], 'ownerdate': '2011-03-03', 'amount': 0.0})
    sales.append({'apn': properties[1]['apn'], 'ownerdate': '2011-03-03', 'amount': 10000001.0})
    sales.append(dict(sales[0]))
    
    return {
        'properties': pd.DataFrame(properties),
        'housing': pd.DataFrame(units),
        'sales': pd.DataFrame(sales),
        'second_program': pd.DataFrame(second_units),
    }


def save_sample_inputs(output_dir, **kwargs) -> Dict[str, Path]:
    """Write generated inputs as csv files and return their paths."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    
    tables = generate_inputs(**kwargs)
    paths = {}
    for name, df in tables.items():
        path = output_path / f'{name}.csv'
        df.to_csv(path, index=False)
        paths[name] = path
    
    return paths
