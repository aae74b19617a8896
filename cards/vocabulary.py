"""
Card Vocabulary - Fixed tables used when synthesizing cards from free text.

Defines couriers, logistics statuses, tracking stages, city distances and the
product table used to dress order line items.
"""

from __future__ import annotations

# Courier keyword (as users type it) -> courier profile
COURIERS = {
    "顺丰": {"name": "顺丰速运", "logo": "/images/courier-sf.png", "prefix": "SF"},
    "中通": {"name": "中通快递", "logo": "/images/courier-zto.png", "prefix": "ZTO"},
    "圆通": {"name": "圆通速递", "logo": "/images/courier-yto.png", "prefix": "YT"},
    "申通": {"name": "申通快递", "logo": "/images/courier-sto.png", "prefix": "STO"},
    "韵达": {"name": "韵达快递", "logo": "/images/courier-yd.png", "prefix": "YD"},
    "京东": {"name": "京东物流", "logo": "/images/courier-jd.png", "prefix": "JD"},
    "ems": {"name": "中国邮政EMS", "logo": "/images/courier-ems.png", "prefix": "EMS"},
    "邮政": {"name": "中国邮政EMS", "logo": "/images/courier-ems.png", "prefix": "EMS"},
}
DEFAULT_COURIER_KEY = "顺丰"

# Logistics status -> keywords that select it, checked in this order.
# 已签收 comes first so "已签收" is never read as an earlier stage.
LOGISTICS_STATUS_KEYWORDS = [
    ("已签收", ("已签收", "签收", "已送达")),
    ("派送中", ("派送中", "派送", "正在派件")),
    ("运输中", ("运输中", "在途", "中转")),
    ("已发出", ("已发出", "已发货", "发出")),
    ("已揽收", ("已揽收", "揽收", "揽件")),
]
UNKNOWN_STATUS = "未知"

# Logistics status -> (latest update text, estimated delivery offset in days)
LOGISTICS_STATUS_PROFILE = {
    "未知": ("暂无最新物流信息，请稍后再查", 3),
    "已揽收": ("快递员已揽收，包裹等待发出", 3),
    "已发出": ("包裹已从发货地发出", 2),
    "运输中": ("包裹正在运输途中", 2),
    "派送中": ("快递员正在派送，请保持电话畅通", 0),
    "已签收": ("包裹已签收，感谢使用", None),
}

# Tracking stages in lifecycle order: (stage, completion percentage)
TRACKING_STAGES = [
    ("已下单", 10),
    ("已揽收", 20),
    ("运输中", 50),
    ("派送中", 80),
    ("已签收", 100),
]
DEFAULT_TRACKING_STAGE = "运输中"

# Stage -> keywords, checked from the most advanced stage down
TRACKING_STAGE_KEYWORDS = [
    ("已签收", ("已签收", "签收", "已送达")),
    ("派送中", ("派送中", "派送", "正在派件")),
    ("运输中", ("运输中", "在途", "中转")),
    ("已揽收", ("已揽收", "揽收", "已发货", "已发出")),
    ("已下单", ("已下单", "待发货", "刚下单")),
]

# Stage -> days until delivery (None once delivered)
TRACKING_DELIVERY_OFFSET_DAYS = {
    "已下单": 4,
    "已揽收": 3,
    "运输中": 2,
    "派送中": 0,
    "已签收": None,
}

DEFAULT_ORIGIN = "广州"
DEFAULT_DESTINATION = "北京"

# Unordered city pair -> road distance in km
CITY_DISTANCES_KM = {
    frozenset(("北京", "上海")): 1213.0,
    frozenset(("北京", "广州")): 1897.5,
    frozenset(("北京", "深圳")): 1943.0,
    frozenset(("上海", "广州")): 1434.0,
    frozenset(("上海", "深圳")): 1390.0,
    frozenset(("广州", "深圳")): 140.0,
    frozenset(("上海", "杭州")): 176.0,
    frozenset(("北京", "杭州")): 1262.0,
    frozenset(("北京", "成都")): 1697.0,
    frozenset(("成都", "重庆")): 308.0,
    frozenset(("广州", "武汉")): 984.0,
    frozenset(("北京", "武汉")): 1152.0,
}
DEFAULT_DISTANCE_KM = 1000.0

# Order status code (data provider) -> label
ORDER_STATUS_LABELS = {
    0: "待付款",
    1: "已付款",
    2: "已发货",
    3: "已完成",
    4: "已取消",
}

# Order status label -> keywords in a message, checked in this order
ORDER_STATUS_KEYWORDS = [
    ("待付款", ("待付款", "未付款")),
    ("已发货", ("已发货", "配送中", "运输中")),
    ("已付款", ("已付款", "已支付", "已下单")),
    ("已完成", ("已完成", "已签收")),
    ("已取消", ("已取消",)),
]

ORDER_NOT_FOUND_MARKERS = ("404", "不存在", "unknown")
ORDER_MISSING_PHRASES = ("不存在的订单", "未找到", "找不到")

# Product id suffix -> (name, image, category)
PRODUCTS = {
    1: ("智能手表", "/images/product-watch.jpg", "电子产品"),
    2: ("蓝牙耳机", "/images/product-headphones.jpg", "电子产品"),
    3: ("机械键盘", "/images/product-keyboard.jpg", "电子产品"),
    4: ("运动鞋", "/images/product-shoes.jpg", "服装"),
    5: ("牛仔裤", "/images/product-jeans.jpg", "服装"),
}
DEFAULT_PRODUCT = ("商品", "/images/product-default.jpg", "商品")

PLACEHOLDER_USER = {
    "user_id": 10001,
    "user_name": "张三",
    "user_phone": "135****6789",
    "user_address": "北京市海淀区中关村大街1号",
}

# Tracking stage -> (timeline description, location); {origin}/{destination}
# are filled from the route. A card at stage N lists stages 0..N newest first.
TRACKING_TIMELINE = {
    "已下单": ("订单已生成，等待商家发货", "系统"),
    "已揽收": ("快递员已揽收，包裹等待发出", "{origin}"),
    "运输中": ("包裹已从{origin}发往{destination}", "{origin}转运中心"),
    "派送中": ("包裹已到达{destination}，快递员正在派送", "{destination}"),
    "已签收": ("包裹已签收，感谢使用", "{destination}"),
}
# Hours between consecutive timeline entries
TRACKING_STEP_HOURS = 12
