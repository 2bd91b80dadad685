# restobot/ordering/render.py
from __future__ import annotations

from typing import List

from .catalog import Catalog
from .state import ConversationState, OrderLine, PlacedOrder, order_total

INVALID_INPUT = "Invalid input. Please enter a number from the menu."
EMPTY_INPUT = "Please enter a valid message."


def welcome_message() -> str:
    return (
        "🍽️ Welcome to Restaurant Chatbot! 🤖\n\n"
        "How can I help you today?\n\n"
        "Select 1️⃣ to Place an order\n"
        "Select 99️⃣ to Checkout order\n"
        "Select 98️⃣ to See order history\n"
        "Select 97️⃣ to See current order\n"
        "Select 0️⃣ to Cancel order"
    )


def menu_listing(catalog: Catalog) -> str:
    cur = catalog.currency_symbol
    menu_text = "\n".join(f"{it.id}. {it.name} - {cur}{it.price}" for it in catalog.list())
    return (
        f"🍽️ **Our Menu** 🍽️\n\n{menu_text}\n\n"
        "Select an item number to add to your order.\n"
        "Or select 99 to checkout."
    )


def invalid_option() -> str:
    return "❌ Invalid option. Please select from the menu.\n\n" + welcome_message()


def format_line(line: OrderLine, currency_symbol: str) -> str:
    return f"{line.name} - {currency_symbol}{line.price}"


def numbered_lines(lines: List[OrderLine], currency_symbol: str, indent: str = "") -> str:
    return "\n".join(
        f"{indent}{i}. {format_line(line, currency_symbol)}" for i, line in enumerate(lines, start=1)
    )


def item_added(line: OrderLine) -> str:
    return (
        f"✅ {line.name} added to your order!\n\n"
        "Select another item number to continue ordering\n"
        "or select 99 to checkout."
    )


def invalid_item() -> str:
    return "❌ Invalid item selection. Please select a valid menu item."


def nothing_to_checkout() -> str:
    return (
        "❌ No order to place.\n\nWould you like to place a new order?\n"
        "Select 1 to start ordering or select 0 to exit."
    )


def order_placed(placed: PlacedOrder, currency_symbol: str) -> str:
    return (
        "✅ Order placed successfully!\n\n"
        f"📦 Your Order Summary:\n{numbered_lines(placed.lines, currency_symbol)}\n\n"
        f"💰 Total Amount: {currency_symbol}{placed.total}\n\n"
        f"Order Reference: {placed.reference}\n\n"
        "Select 1 to proceed to payment or select 0 to exit."
    )


def order_history(state: ConversationState, currency_symbol: str) -> str:
    if not state.order_history:
        return "📭 You have no order history.\n\nWould you like to place a new order?\nSelect 1 to start."

    blocks = []
    for index, placed in enumerate(state.order_history, start=1):
        blocks.append(
            f"📦 Order {index} ({placed.reference}, {placed.payment_status.value}):\n"
            + numbered_lines(placed.lines, currency_symbol, indent="  ")
        )
    history_text = "\n\n".join(blocks)
    return f"📜 Your Order History:\n\n{history_text}\n\nSelect 1 to place a new order or 0 to exit."


def current_order(state: ConversationState, currency_symbol: str) -> str:
    if not state.current_order:
        return "🛒 Your current order is empty.\n\nSelect 1 to start placing an order."

    total = order_total(state.current_order)
    return (
        f"🧾 Your Current Order:\n\n{numbered_lines(state.current_order, currency_symbol)}\n\n"
        f"💰 Total: {currency_symbol}{total}\n\n"
        "Select 99 to checkout or continue adding items."
    )


def order_cancelled() -> str:
    return (
        "❌ Your order has been cancelled.\n\n"
        "Would you like to place a new order?\n" + welcome_message()
    )


def nothing_to_cancel() -> str:
    return "📭 No order to cancel.\n\nSelect 1 to place a new order."


def payment_cancelled() -> str:
    return "Payment cancelled. How can I help you today?\n\nSelect 1 to place a new order or 0 to exit."


def payment_redirect(amount: int, reference: str, currency_symbol: str) -> str:
    return (
        "✅ Payment initialized!\n\n"
        "You'll be redirected to Paystack to complete your payment.\n\n"
        f"Amount: {currency_symbol}{amount}\nReference: {reference}"
    )


def payment_failed() -> str:
    return "❌ Failed to initialize payment. Please try again.\n\nSelect 1 to retry or 0 to exit."


def payment_unavailable() -> str:
    return (
        "❌ Online payment is not available right now. Please contact support.\n\n"
        "Select 0 to exit."
    )
