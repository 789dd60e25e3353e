# 配送范围校验（球面距离，haversine公式）

import math

from .models import LocationValidationResult

EARTH_RADIUS_KM = 6371


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """计算两点间的大圆距离，单位公里"""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def validate_location(customer_lat: float, customer_lng: float,
                      restaurant_lat: float, restaurant_lng: float,
                      radius_km: float) -> LocationValidationResult:
    """
    校验顾客位置是否在配送半径内

    距离保留一位小数；超出范围时错误信息给出距离、半径和超出的公里数。
    比较使用未取整的距离。
    """
    distance = calculate_distance(customer_lat, customer_lng, restaurant_lat, restaurant_lng)
    rounded = round(distance, 1)

    if distance <= radius_km:
        return LocationValidationResult(is_valid=True, distance_km=rounded)

    excess = round(distance - radius_km, 1)
    return LocationValidationResult(
        is_valid=False,
        distance_km=rounded,
        error=(f"Sorry, you are {rounded:g}km away. We only deliver within {radius_km:g}km radius "
               f"({excess:g}km outside the delivery area)."),
    )
