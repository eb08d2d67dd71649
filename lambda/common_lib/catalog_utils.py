"""
Catering catalog
Static package, entree, side and service definitions offered by the order
form, plus server-side pricing helpers
"""

import logging

from money_utils import to_cents

logger = logging.getLogger(__name__)

MINIMUM_GUEST_COUNT = 15

SERVICE_TYPE_PER_PERSON = 'per_person'
SERVICE_TYPE_QUOTE_BASED = 'quote_based'

PACKAGES = [
    {
        'id': 'kkc1',
        'name': "Kaycee's Kitchen #1",
        'subtitle': 'KKC 1',
        'price': 30,
        'description': 'Economical and satisfying with crowd-pleasing classics',
        'bestFor': 'Small gatherings or individual meals',
        'entrees': 1,
        'sides': 2,
        'features': ['One Entrée', 'Two Sides', 'Rolls', 'Signature Salad']
    },
    {
        'id': 'kkc2',
        'name': "Kaycee's Kitchen #2",
        'subtitle': 'KKC 2',
        'price': 38,
        'description': 'Balanced selection with variety and generous portions',
        'bestFor': 'Corporate lunches & mid-size events',
        'entrees': 2,
        'sides': 3,
        'features': ['Two Entrées', 'Three Sides', 'Rolls', 'Signature Salad']
    },
    {
        'id': 'kkc3',
        'name': "Kaycee's Kitchen #3",
        'subtitle': 'KKC 3',
        'price': 49,
        'description': 'A premium package of Soul Food Exquisites designed to impress',
        'bestFor': 'Weddings, banquets, or large-scale events',
        'entrees': 3,
        'sides': 4,
        'features': ['Three Entrées', 'Four Sides', 'Rolls', 'Signature Salad']
    }
]

ENTREES = [
    # Chicken
    {'name': 'Pan Roasted Chicken Breast (Optional Sauce: Citrus Glaze, Lemon Pepper, Honey Barbecue, Hot Mambo)', 'category': 'Chicken', 'price': 20},
    {'name': 'Southern Fried Chicken', 'category': 'Chicken', 'price': 20},
    {'name': 'Jamaican Style Jerk Chicken', 'category': 'Chicken', 'price': 20},
    {'name': 'Sliced Oven Roasted Turkey', 'category': 'Chicken', 'price': 20},
    {'name': 'Bourbon Chicken Tips', 'category': 'Chicken', 'price': 20},

    # Pork
    {'name': 'BBQ Pork Barbeque', 'category': 'Pork', 'price': 20},
    {'name': 'Sliced Honey Glazed Ham with Pineapple', 'category': 'Pork', 'price': 20},
    {'name': 'Thick Cut Grilled Pork Chops with Roasted Garlic and Bourbon Sauce', 'category': 'Pork', 'price': 20},

    # Beef
    {'name': 'Bacon Wrapped Meatloaf', 'category': 'Beef', 'price': 24},
    {'name': 'Braised Short Ribs', 'category': 'Beef', 'price': 24},
    {'name': 'Tender Beef Brisket with Caramelized Onions', 'category': 'Beef', 'price': 24},
    {'name': 'Bourbon Beef Tips', 'category': 'Beef', 'price': 24},
    {'name': 'Sliced Beef Sirloin', 'category': 'Beef', 'price': 24},

    # Seafood
    {'name': 'Shrimp and Grits', 'category': 'Seafood', 'price': 26},
    {'name': 'Glazed Salmon', 'category': 'Seafood', 'price': 26},
    {'name': 'Crab Cakes', 'category': 'Seafood', 'price': 28},
    {'name': 'Fried/Grilled Catfish Cakes', 'category': 'Seafood', 'price': 26},
    {'name': 'Fried/Grilled Shrimp Skewers', 'category': 'Seafood', 'price': 26},

    # Pasta
    {'name': 'Baked Rigatoni with Italian Meatballs in Marinara', 'category': 'Pasta', 'price': 22},
    {'name': 'Deep Dish Lasagna', 'category': 'Pasta', 'price': 22},
    {'name': 'Cajun Style Jambalaya: Chicken, Sausage and Shrimp', 'category': 'Pasta', 'price': 26},
    {'name': 'Chicken and Broccoli Alfredo', 'category': 'Pasta', 'price': 22},
    {'name': 'Rasta Pasta - Shrimp, Steak, Chicken', 'category': 'Pasta', 'price': 26}
]

SIDES = [
    {'name': 'Green Beans', 'price': 0},
    {'name': 'Honey Glazed Carrots', 'price': 0},
    {'name': 'Broccoli Casserole', 'price': 0},
    {'name': 'Sweet Corn', 'price': 0},
    {'name': 'Vegetable Medley', 'price': 0},
    {'name': 'Cauliflower Casserole', 'price': 0},
    {'name': 'Macaroni and Cheese', 'price': 0},
    {'name': 'Rice, White, Dirty, Pilaf or Spanish', 'price': 0},
    {'name': 'Roasted Red Potatoes', 'price': 0},
    {'name': 'Baked Beans', 'price': 0},
    {'name': 'Potato Salad', 'price': 0},
    {'name': 'Fried Cabbage', 'price': 0}
]

ADDITIONAL_SERVICES = [
    {
        'id': 'beverage',
        'name': 'Standard Beverage Service',
        'price': 5,
        'description': 'Includes soft drinks, water, and tea service',
        'type': SERVICE_TYPE_PER_PERSON
    },
    {
        'id': 'delivery',
        'name': 'Delivery and Setup Fee',
        'price': 0,
        'description': 'Based on location & size - included in final quote',
        'type': SERVICE_TYPE_QUOTE_BASED
    },
    {
        'id': 'staff',
        'name': 'KKC Full Service Catering Staff',
        'price': 0,
        'description': 'Onsite staff available at $25/hr per staff member',
        'type': SERVICE_TYPE_QUOTE_BASED
    },
    {
        'id': 'disposal',
        'name': 'Chafing Dishes & Disposables Package',
        'price': 0,
        'description': 'Serving pieces, disposable plates, napkins, and cutlery',
        'type': SERVICE_TYPE_QUOTE_BASED
    }
]

_PACKAGES_BY_ID = {package['id']: package for package in PACKAGES}
_ENTREES_BY_NAME = {entree['name'].lower(): entree for entree in ENTREES}
_SIDES_BY_NAME = {side['name'].lower(): side for side in SIDES}
_SERVICES_BY_ID = {service['id']: service for service in ADDITIONAL_SERVICES}


def get_package(package_id):
    return _PACKAGES_BY_ID.get(package_id)

def find_entree(name):
    return _ENTREES_BY_NAME.get((name or '').lower())

def find_side(name):
    return _SIDES_BY_NAME.get((name or '').lower())

def get_service(service_id):
    return _SERVICES_BY_ID.get(service_id)


def _reprice(item, catalog_item, kind):
    """Copy of item carrying the catalog price (and service type, if any)"""
    if not catalog_item:
        return dict(item)

    repriced = dict(item)
    if to_cents(item.get('price', 0) or 0) != to_cents(catalog_item['price']):
        logger.warning(f"Submitted {kind} price for '{item.get('name')}' ({item.get('price')}) "
                       f"differs from catalog price ({catalog_item['price']}); using catalog price")
    repriced['price'] = catalog_item['price']
    if 'type' in catalog_item:
        repriced['type'] = catalog_item['type']
    return repriced


def reprice_selection(package, entrees, sides, services):
    """
    Apply catalog prices to a submitted selection

    Items the catalog knows take the catalog price; unknown items keep the
    price the form submitted.

    Returns:
        tuple: (package, entrees, sides, services) as new dicts/lists
    """
    package = _reprice(package, get_package(package.get('id')), 'package')
    entrees = [_reprice(entree, find_entree(entree.get('name')), 'entree') for entree in entrees]
    sides = [_reprice(side, find_side(side.get('name')), 'side') for side in sides]
    services = [_reprice(service, get_service(service.get('id')), 'service') for service in services]
    return package, entrees, sides, services


def estimate_total(package, guest_count, entrees, services):
    """
    Total the form shows the customer, in cents

    Package and entrees are per guest; only per-person services add to the
    total, quote-based services are priced later.
    """
    per_guest = to_cents(package.get('price', 0) or 0)
    per_guest += sum(to_cents(entree.get('price', 0) or 0) for entree in entrees)
    per_guest += sum(
        to_cents(service.get('price', 0) or 0)
        for service in services
        if service.get('type') == SERVICE_TYPE_PER_PERSON
    )
    return per_guest * guest_count
