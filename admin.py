import streamlit as st
import pandas as pd
import requests

from salon_booking.core.config import settings

COLUMNS = {
    "bookingId": "Booking ID",
    "date": "Date",
    "time": "Time",
    "stylist": "Stylist",
    "service": "Service",
    "customer.name": "Customer",
    "customer.phone": "Phone",
    "status": "Status",
    "price": "Price",
    "createdAt": "Created",
}

def fetch_bookings(api_url: str = None) -> list:
    """Returns all bookings from the API, newest first. Raises on HTTP errors."""
    response = requests.get(api_url or settings.ADMIN_API_URL, timeout=10)
    response.raise_for_status()
    return response.json().get("data", [])

def bookings_frame(bookings: list) -> pd.DataFrame:
    if not bookings:
        return pd.DataFrame(columns=list(COLUMNS))
    # Flattens customer into customer.name, customer.phone, ...
    df = pd.json_normalize(bookings)
    df["createdAt"] = pd.to_datetime(df.get("createdAt"), errors="coerce")
    return df[[column for column in COLUMNS if column in df.columns]]

def cancel_booking(booking_id: str, api_url: str = None) -> bool:
    response = requests.delete(f"{api_url or settings.ADMIN_API_URL}/{booking_id}", timeout=10)
    return response.status_code == 200 and response.json().get("success", False)

def main():
    st.set_page_config(
        page_title="Salon Admin",
        page_icon="💈",
        layout="wide"
    )

    st.title("Salon Bookings - Admin Panel")

    if st.button("Refresh"):
        st.rerun()

    try:
        df = bookings_frame(fetch_bookings())
    except requests.RequestException as e:
        st.error(f"Could not load bookings: {e}")
        return

    if df.empty:
        st.info("No bookings yet.")
        return

    active = df[df["status"] != "cancelled"]

    col1, col2, col3 = st.columns(3)
    col1.metric("Total bookings", len(df))
    col2.metric("Active", len(active))
    col3.metric("Cancelled", len(df) - len(active))

    st.subheader("Bookings")
    st.dataframe(
        df.rename(columns=COLUMNS),
        use_container_width=True,
        column_config={
            "Created": st.column_config.DatetimeColumn("Created", format="D.M.YYYY HH:mm"),
        }
    )

    st.subheader("Cancel a booking")
    booking_id = st.selectbox("Booking", active["bookingId"].tolist())
    if st.button("Cancel booking", disabled=not booking_id):
        if cancel_booking(booking_id):
            st.success(f"Booking {booking_id} cancelled.")
        else:
            st.error(f"Booking {booking_id} could not be cancelled.")

    st.markdown("---")
    st.caption("Salon Booking API • Admin")

if __name__ == "__main__":
    main()
